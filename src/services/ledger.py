# services/ledger.py

import random
import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Optional

from errors import ValidationError
from models import QuotationLineItem, new_id

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────
# TAXES
# GST fixe : 18% réparti à parts égales CGST / SGST.
# Tout passe par Decimal, jamais par des floats binaires.
# ─────────────────────────────────────────

CGST_RATE = Decimal("0.09")
SGST_RATE = Decimal("0.09")

CENT = Decimal("0.01")


def compute_totals(line_items: Iterable) -> dict:
    """
    Sous-total, taxes et montant net d'une liste de lignes.
    Fonction pure.

    line_items : QuotationLineItem ou dicts avec une clé "amount"

    Retourne :
    {
        "sub_total":  Decimal,
        "cgst":       Decimal,
        "sgst":       Decimal,
        "net_amount": Decimal
    }
    """
    sub_total = sum(
        (_item_amount(item) for item in line_items),
        Decimal("0")
    )
    cgst = sub_total * CGST_RATE
    sgst = sub_total * SGST_RATE

    return {
        "sub_total": sub_total,
        "cgst": cgst,
        "sgst": sgst,
        "net_amount": sub_total + cgst + sgst
    }


def quantize_money(value) -> Decimal:
    """Arrondi d'affichage au paisa. Jamais appliqué aux montants stockés."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_decimal(value) -> Decimal:
    """
    str / int / Decimal → Decimal.
    Les floats passent par leur représentation texte ("0.1" et non
    0.1000000000000000055...).
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValidationError(f"Invalid amount '{value}'.")
    try:
        if isinstance(value, float):
            return Decimal(repr(value))
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid amount '{value}'.")


# ─────────────────────────────────────────
# LIGNES DE DEVIS
# ─────────────────────────────────────────

def build_line_items(raw_items: Optional[Iterable]) -> list[QuotationLineItem]:
    """
    Normalise et valide les lignes d'un devis.
    Accepte des QuotationLineItem ou des dicts
    {description, hsn, pcs, quantity, amount, id?}.

    Lève ValidationError avant toute mutation si une ligne est invalide.
    """
    items = list(raw_items or [])
    if not items:
        raise ValidationError("A quotation needs at least one line item.")

    normalized = []
    for position, raw in enumerate(items, start=1):
        if isinstance(raw, QuotationLineItem):
            raw = {
                "id": raw.id,
                "description": raw.description,
                "hsn": raw.hsn,
                "pcs": raw.pcs,
                "quantity": raw.quantity,
                "amount": raw.amount,
            }
        elif not isinstance(raw, dict):
            raise ValidationError(f"Line {position}: invalid line item.")

        amount = to_decimal(raw.get("amount", 0))
        if not amount.is_finite() or amount < 0:
            raise ValidationError(f"Line {position}: amount must be zero or positive.")

        normalized.append(QuotationLineItem(
            id=str(raw.get("id") or new_id("LI")),
            description=str(raw.get("description") or "").strip(),
            hsn=str(raw.get("hsn") or "").strip(),
            pcs=_positive_int(raw.get("pcs", 1), "pcs", position),
            quantity=_positive_int(raw.get("quantity", 1), "quantity", position),
            amount=amount
        ))

    return normalized


def _positive_int(value, name: str, position: int) -> int:
    try:
        number = int(str(value).strip())
    except (ValueError, TypeError):
        raise ValidationError(f"Line {position}: '{name}' must be a positive whole number.")
    if number <= 0:
        raise ValidationError(f"Line {position}: '{name}' must be a positive whole number.")
    return number


def _item_amount(item) -> Decimal:
    if isinstance(item, QuotationLineItem):
        return item.amount
    if isinstance(item, dict):
        return to_decimal(item.get("amount", 0))
    return to_decimal(getattr(item, "amount", 0))


# ─────────────────────────────────────────
# NUMÉRO DE DEVIS
# Indicatif uniquement. Les recherches se font toujours par id interne.
# ─────────────────────────────────────────

def generate_quotation_number(
    now: Optional[datetime] = None,
    prefix: str = "SLI-Q"
) -> str:
    now = now or datetime.now()
    return f"{prefix}-{now.year}-{random.randint(0, 999)}"
