# connectors/csv_export.py

import csv
from typing import Iterable

import pandas as pd

from connectors.base import BaseExporter
from models import Customer


COLUMNS = ["Name", "Phone", "Location", "Stage", "Business Type", "Daily Production (kg)"]


class CsvExporter(BaseExporter):
    """
    Export tableur de la liste de clients.
    Les champs contenant des guillemets, virgules ou retours ligne
    sont entourés de guillemets, les guillemets internes doublés.
    """

    media_type = "text/csv"
    extension = "csv"

    def _get_format_name(self) -> str:
        return "csv"

    def export_customers(self, customers: Iterable[Customer]) -> bytes:
        df = pd.DataFrame(
            [
                [
                    c.name,
                    c.phone,
                    c.location,
                    c.stage.label,
                    c.business_type.value,
                    str(c.daily_production),
                ]
                for c in customers
            ],
            columns=COLUMNS
        )

        content = df.to_csv(
            index=False,
            quoting=csv.QUOTE_MINIMAL,
            doublequote=True,
            lineterminator="\n"
        )
        return content.encode("utf-8")
