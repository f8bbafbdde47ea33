# connectors/__init__.py

"""
Factory centralisée pour les exports.

Utilisation :
    from connectors import get_exporter

    exporter = get_exporter("pdf", settings)
    if exporter:
        content = exporter.export_customers(customers)

Un seul endroit à modifier si un format change de nom.
"""

import logging
from typing import Optional
from connectors.base import BaseExporter

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────
# MAP : format → classe d'export
# Ajouter un format = ajouter une ligne ici
# ─────────────────────────────────────────

_EXPORTER_MAP = {
    "csv": ("connectors.csv_export", "CsvExporter"),
    "pdf": ("connectors.pdf_export", "PdfExporter"),
}


def get_exporter(format_name: str, settings=None) -> Optional[BaseExporter]:
    """
    Instancie et retourne le bon export.

    Retourne None si le format est inconnu.
    Ne lance jamais d'exception — log et retourne None.
    """
    entry = _EXPORTER_MAP.get((format_name or "").lower())

    if not entry:
        logger.warning(f"Format d'export inconnu : {format_name}")
        return None

    module_path, class_name = entry

    try:
        import importlib
        module = importlib.import_module(module_path)
        cls = getattr(module, class_name)
        return cls(settings)

    except (ImportError, AttributeError) as e:
        logger.error(f"Erreur instanciation export {format_name} : {e}")
        return None


def list_supported_formats() -> list[str]:
    return list(_EXPORTER_MAP.keys())
