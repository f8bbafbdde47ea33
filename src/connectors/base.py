# connectors/base.py

import re
from abc import ABC, abstractmethod
from typing import Iterable, Optional
from models import Customer, Quotation
import logging

logger = logging.getLogger(__name__)


class BaseExporter(ABC):
    """
    Contrat que tous les exports respectent.

    → export_customers() : obligatoire, la liste affichée
    → export_quotation() : optionnel, un devis précis
    Chaque export retourne des bytes prêts à être téléchargés.
    """

    media_type = "application/octet-stream"
    extension = "bin"

    def __init__(self, settings=None):
        self.settings = settings
        self.format_name = self._get_format_name()

    @abstractmethod
    def _get_format_name(self) -> str:
        pass

    @abstractmethod
    def export_customers(self, customers: Iterable[Customer]) -> bytes:
        pass

    def export_quotation(self, customer: Customer, quotation: Quotation) -> Optional[bytes]:
        logger.warning(f"{self.format_name}.export_quotation() non implémenté")
        return None

    def filename(self, stem: str) -> str:
        """Nom ASCII sûr pour un en-tête HTTP ou une pièce jointe."""
        safe_stem = re.sub(r"[^A-Za-z0-9._-]", "_", stem)
        return f"{safe_stem}.{self.extension}"
