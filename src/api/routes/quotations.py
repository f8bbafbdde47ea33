# api/routes/quotations.py

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel, field_validator

from api.dependencies import verify_api_key, get_store
from api.parsing import DecimalJSONRoute, naive_local
from config import settings
from connectors import get_exporter
from errors import NotFoundError
from models import serialize
from services import lifecycle
from services.ledger import (
    build_line_items, compute_totals, generate_quotation_number, quantize_money
)
from services.store import CustomerStore

router = APIRouter(route_class=DecimalJSONRoute)
logger = logging.getLogger(__name__)


class LineItemRequest(BaseModel):
    id: Optional[str] = None
    description: str = ""
    hsn: str = ""
    pcs: int | str = 1
    quantity: int | str = 1
    # Decimal : les nombres JSON arrivent exacts (voir api/parsing.py)
    amount: Decimal | str = Decimal("0")


class QuotationRequest(BaseModel):
    quotation_number: Optional[str] = None
    date: Optional[datetime] = None
    line_items: list[LineItemRequest] = []
    status: Optional[str] = None

    @field_validator("date")
    @classmethod
    def _local_date(cls, value: Optional[datetime]) -> Optional[datetime]:
        return naive_local(value)


class TotalsRequest(BaseModel):
    line_items: list[LineItemRequest] = []


# ─────────────────────────────────────────
# DEVIS D'UN CLIENT
# ─────────────────────────────────────────

@router.post("/customers/{customer_id}/quotations", status_code=201)
def create_quotation(
    customer_id: str,
    req: QuotationRequest,
    _: str = Depends(verify_api_key),
    store: CustomerStore = Depends(get_store),
) -> dict:
    data = _quotation_data(req)
    customer = store.apply(customer_id, lifecycle.save_quotation, data)
    return {"customer": serialize(customer), "quotation": serialize(customer.quotations[0])}


@router.put("/customers/{customer_id}/quotations/{quotation_id}")
def update_quotation(
    customer_id: str,
    quotation_id: str,
    req: QuotationRequest,
    _: str = Depends(verify_api_key),
    store: CustomerStore = Depends(get_store),
) -> dict:
    # PUT ne crée jamais : l'id doit exister
    _require_quotation(store, customer_id, quotation_id)

    data = _quotation_data(req)
    customer = store.apply(
        customer_id, lifecycle.save_quotation, data, existing_id=quotation_id
    )
    return {
        "customer": serialize(customer),
        "quotation": serialize(customer.find_quotation(quotation_id))
    }


@router.post("/customers/{customer_id}/quotations/{quotation_id}/send")
def mark_sent(
    customer_id: str,
    quotation_id: str,
    _: str = Depends(verify_api_key),
    store: CustomerStore = Depends(get_store),
) -> dict:
    customer = store.apply(customer_id, lifecycle.mark_quotation_sent, quotation_id)
    return serialize(customer)


@router.post("/customers/{customer_id}/quotations/{quotation_id}/confirm")
def confirm_order(
    customer_id: str,
    quotation_id: str,
    _: str = Depends(verify_api_key),
    store: CustomerStore = Depends(get_store),
) -> dict:
    customer = store.apply(customer_id, lifecycle.confirm_order, quotation_id)
    return serialize(customer)


@router.get("/customers/{customer_id}/quotations/{quotation_id}/pdf")
def quotation_pdf(
    customer_id: str,
    quotation_id: str,
    _: str = Depends(verify_api_key),
    store: CustomerStore = Depends(get_store),
) -> Response:
    customer, quotation = _require_quotation(store, customer_id, quotation_id)

    exporter = get_exporter("pdf", settings)
    if exporter is None:
        raise HTTPException(status_code=500, detail="PDF export unavailable.")

    content = exporter.export_quotation(customer, quotation)
    # Numéro libre : version ASCII pour filename, UTF-8 complète pour filename*
    filename = exporter.filename(f"quotation-{quotation.quotation_number}")
    full_name = f"quotation-{quotation.quotation_number}.{exporter.extension}"
    disposition = (
        f'attachment; filename="{filename}"; '
        f"filename*=UTF-8''{quote(full_name, safe='')}"
    )
    return Response(
        content=content,
        media_type=exporter.media_type,
        headers={"Content-Disposition": disposition}
    )


# ─────────────────────────────────────────
# OUTILS DU FORMULAIRE
# ─────────────────────────────────────────

@router.post("/quotations/totals")
def preview_totals(
    req: TotalsRequest,
    _: str = Depends(verify_api_key),
) -> dict:
    """Aperçu des totaux pendant la saisie. Valeurs exactes + arrondi d'affichage."""
    line_items = build_line_items([item.model_dump() for item in req.line_items])
    totals = compute_totals(line_items)
    return {
        "exact": {k: str(v) for k, v in totals.items()},
        "display": {k: str(quantize_money(v)) for k, v in totals.items()},
    }


@router.get("/quotations/number")
def next_quotation_number(_: str = Depends(verify_api_key)) -> dict:
    return {"quotation_number": generate_quotation_number(prefix=settings.quotation_prefix)}


# ─────────────────────────────────────────
# UTILITAIRES
# ─────────────────────────────────────────

def _quotation_data(req: QuotationRequest) -> dict:
    return {
        "quotation_number": req.quotation_number
        or generate_quotation_number(prefix=settings.quotation_prefix),
        "date": req.date,
        "line_items": [item.model_dump() for item in req.line_items],
        "status": req.status,
    }


def _require_quotation(store: CustomerStore, customer_id: str, quotation_id: str):
    customer = store.get(customer_id)
    quotation = customer.find_quotation(quotation_id)
    if quotation is None:
        raise NotFoundError(f"Quotation {quotation_id} not found for customer {customer_id}.")
    return customer, quotation
