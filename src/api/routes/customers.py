# api/routes/customers.py

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, field_validator

from api.dependencies import verify_api_key, get_store
from api.parsing import naive_local
from config import settings
from models import Stage, new_customer, serialize
from services import lifecycle, queries
from services.follow_up import suggest_follow_up
from services.store import CustomerStore

router = APIRouter()
logger = logging.getLogger(__name__)


# ─────────────────────────────────────────
# REQUÊTES
# ─────────────────────────────────────────

class CreateCustomerRequest(BaseModel):
    name: str
    phone: str
    location: str
    business_type: str
    daily_production: int | str
    stage: str = Stage.ENQUIRY.value


class UpdateCustomerRequest(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    business_type: Optional[str] = None
    daily_production: Optional[int | str] = None


class ChangeStageRequest(BaseModel):
    stage: str


class AddNoteRequest(BaseModel):
    content: str
    date: Optional[datetime] = None
    # Absent → relance par défaut dans FOLLOW_UP_DEFAULT_DAYS jours
    # null explicite → relance effacée
    next_follow_up_date: Optional[datetime] = None

    @field_validator("date", "next_follow_up_date")
    @classmethod
    def _local_dates(cls, value: Optional[datetime]) -> Optional[datetime]:
        return naive_local(value)


# ─────────────────────────────────────────
# LISTE
# ─────────────────────────────────────────

@router.get("")
def list_customers(
    stage: list[str] = Query(default=[]),
    pending: bool = False,
    created: str = "all",
    sort: Optional[str] = None,
    direction: str = "ascending",
    _: str = Depends(verify_api_key),
    store: CustomerStore = Depends(get_store),
) -> dict:
    """
    Filtres combinables :
    ?stage=Lead&stage=Booking&pending=true&created=week&sort=name&direction=descending
    """
    customers = queries.customer_view(
        store.all(),
        stages=stage,
        pending_only=pending,
        created=created,
        sort_key=sort,
        direction=direction,
        pending_threshold_days=settings.pending_follow_up_days
    )

    return {
        "customers": [serialize(c) for c in customers],
        "count": len(customers)
    }


@router.post("", status_code=201)
def create_customer(
    req: CreateCustomerRequest,
    _: str = Depends(verify_api_key),
    store: CustomerStore = Depends(get_store),
) -> dict:
    customer = new_customer(
        name=req.name,
        phone=req.phone,
        location=req.location,
        business_type=req.business_type,
        daily_production=req.daily_production,
        stage=req.stage
    )
    store.add(customer)
    logger.info(f"Client créé : {customer.id} ({customer.name})")
    return serialize(customer)


# ─────────────────────────────────────────
# FICHE
# ─────────────────────────────────────────

@router.get("/{customer_id}")
def get_customer(
    customer_id: str,
    _: str = Depends(verify_api_key),
    store: CustomerStore = Depends(get_store),
) -> dict:
    return serialize(store.get(customer_id))


@router.patch("/{customer_id}")
def update_customer(
    customer_id: str,
    req: UpdateCustomerRequest,
    _: str = Depends(verify_api_key),
    store: CustomerStore = Depends(get_store),
) -> dict:
    fields = req.model_dump(exclude_none=True)
    customer = store.apply(customer_id, lifecycle.update_details, **fields)
    return serialize(customer)


@router.delete("/{customer_id}")
def delete_customer(
    customer_id: str,
    _: str = Depends(verify_api_key),
    store: CustomerStore = Depends(get_store),
) -> dict:
    store.delete(customer_id)
    return {"deleted": customer_id}


# ─────────────────────────────────────────
# PIPELINE & NOTES
# ─────────────────────────────────────────

@router.post("/{customer_id}/stage")
def change_stage(
    customer_id: str,
    req: ChangeStageRequest,
    _: str = Depends(verify_api_key),
    store: CustomerStore = Depends(get_store),
) -> dict:
    customer = store.apply(customer_id, lifecycle.change_stage, req.stage)
    return serialize(customer)


@router.post("/{customer_id}/notes", status_code=201)
def add_note(
    customer_id: str,
    req: AddNoteRequest,
    _: str = Depends(verify_api_key),
    store: CustomerStore = Depends(get_store),
) -> dict:
    now = datetime.now()

    if "next_follow_up_date" in req.model_fields_set:
        next_follow_up = req.next_follow_up_date
    else:
        next_follow_up = now + timedelta(days=settings.follow_up_default_days)

    customer = store.apply(
        customer_id,
        lifecycle.add_note,
        req.content,
        entry_date=req.date,
        next_follow_up_date=next_follow_up,
        now=now
    )
    return serialize(customer)


@router.get("/{customer_id}/follow-up-suggestion")
def follow_up_suggestion(
    customer_id: str,
    _: str = Depends(verify_api_key),
    store: CustomerStore = Depends(get_store),
) -> dict:
    customer = store.get(customer_id)
    return {"customer_id": customer_id, "suggestion": suggest_follow_up(customer)}
