# connectors/csv_import.py

import io
import re
import logging
from datetime import datetime
from typing import Optional

import pandas as pd

from errors import CustomerImportError, ValidationError
from models import (
    Customer, is_valid_business_type, is_valid_stage, new_customer,
    parse_daily_production
)

logger = logging.getLogger(__name__)


REQUIRED_HEADERS = ["name", "phone", "location", "businessType", "dailyProduction", "stage"]

SAMPLE_CSV = (
    "name,phone,location,businessType,dailyProduction,stage\n"
    "Example Snacks Inc.,9876543210,Sample City,Snacks,250,Lead\n"
    "Murukku World,9123456789,Test Town,Murukku,120,Enquiry\n"
)


class CustomerCsvImporter:
    """
    Import en masse de clients depuis un CSV.

    Format attendu (en-tête obligatoire, colonnes supplémentaires ignorées) :
    name | phone | location | businessType | dailyProduction | stage

    Tout ou rien : la première ligne invalide annule l'import entier.
    Les numéros de ligne comptent l'en-tête comme ligne 1.
    """

    def parse(self, text: str, now: Optional[datetime] = None) -> list[Customer]:
        now = now or datetime.now()
        df = self._read(text)

        # Normalisation des noms de colonnes (espaces autour)
        df.columns = [str(c).strip() for c in df.columns]

        missing = [h for h in REQUIRED_HEADERS if h not in df.columns]
        if missing:
            raise CustomerImportError(
                f"Invalid CSV header. Must contain: {', '.join(REQUIRED_HEADERS)}",
                row=1
            )

        if df.empty:
            raise CustomerImportError("CSV file is empty or has only a header.")

        customers = []
        for i, row in df.iterrows():
            customers.append(self._normalize_row(row, int(i) + 2, now))

        logger.info(f"CSV : {len(customers)} clients lus")
        return customers

    def _read(self, text: str) -> pd.DataFrame:
        if not text or not text.strip():
            raise CustomerImportError("CSV file is empty or has only a header.")

        try:
            return pd.read_csv(
                io.StringIO(text.strip()),
                dtype=str,
                keep_default_na=False,
                skip_blank_lines=False
            )
        except pd.errors.EmptyDataError:
            raise CustomerImportError("CSV file is empty or has only a header.")
        except pd.errors.ParserError as e:
            # "Expected 6 fields in line 3, saw 7"
            match = re.search(r"line (\d+)", str(e))
            row = int(match.group(1)) if match else None
            if row is not None:
                raise CustomerImportError(f"Row {row}: Incorrect number of columns.", row=row)
            raise CustomerImportError(f"Malformed CSV file: {e}")

    def _normalize_row(self, row: pd.Series, line: int, now: datetime) -> Customer:
        values = {}
        for header in REQUIRED_HEADERS:
            value = row.get(header)
            # Ligne trop courte ou ligne vide → champs manquants (NaN)
            if value is None or (isinstance(value, float) and pd.isna(value)):
                raise CustomerImportError(f"Row {line}: Incorrect number of columns.", row=line)
            values[header] = str(value).strip()

        if not values["name"] or not values["phone"] or not values["location"]:
            raise CustomerImportError(
                f"Row {line}: Name, phone, and location are required.", row=line
            )

        try:
            parse_daily_production(values["dailyProduction"])
        except ValidationError:
            raise CustomerImportError(
                f"Row {line}: 'dailyProduction' must be a positive number.", row=line
            )

        if not is_valid_business_type(values["businessType"]):
            raise CustomerImportError(
                f"Row {line}: Invalid 'businessType'. Must be 'Murukku' or 'Snacks'.", row=line
            )

        if not is_valid_stage(values["stage"]):
            raise CustomerImportError(f"Row {line}: Invalid 'stage'.", row=line)

        try:
            return new_customer(
                name=values["name"],
                phone=values["phone"],
                location=values["location"],
                business_type=values["businessType"],
                daily_production=values["dailyProduction"],
                stage=values["stage"],
                now=now
            )
        except ValidationError as e:
            raise CustomerImportError(f"Row {line}: {e}", row=line)


def import_customers(store, text: str, now: Optional[datetime] = None) -> list[Customer]:
    """
    Parse tout le fichier, puis ajoute le lot d'un seul coup.
    Si le parsing échoue, le store n'est pas touché.
    """
    customers = CustomerCsvImporter().parse(text, now=now)
    return store.add_many(customers)
