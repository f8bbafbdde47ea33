# models.py

import uuid
from dataclasses import dataclass, field, asdict, is_dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from errors import ValidationError


# ─────────────────────────────────────────
# ENUMS
# ─────────────────────────────────────────

class Stage(str, Enum):
    ENQUIRY = "Enquiry"
    LEAD = "Lead"
    BOOKING = "Booking"
    RETAIL = "Retail"

    @property
    def label(self) -> str:
        return STAGE_LABELS[self]


STAGE_LABELS = {
    Stage.ENQUIRY: "Enquiry",
    Stage.LEAD: "Lead",
    Stage.BOOKING: "Booking",
    Stage.RETAIL: "Retail / Order Complete",
}

# Ordre d'affichage du pipeline.
# Aucune contrainte de transition : on peut sauter d'un stage à n'importe quel autre.
STAGES = [Stage.ENQUIRY, Stage.LEAD, Stage.BOOKING, Stage.RETAIL]


class BusinessType(str, Enum):
    MURUKKU = "Murukku"
    SNACKS = "Snacks"


class QuotationStatus(str, Enum):
    DRAFT = "Draft"
    SENT = "Sent"
    ACCEPTED = "Accepted"      # uniquement via confirm_order, sans retour


# ─────────────────────────────────────────
# CORE MODELS
# ─────────────────────────────────────────

@dataclass(frozen=True)
class Note:
    id: str
    content: str
    created_at: datetime               # saisi par l'utilisateur, peut être antidaté


@dataclass(frozen=True)
class StageHistoryEntry:
    from_stage: Optional[Stage]        # None uniquement pour l'entrée de création
    to_stage: Stage
    changed_at: datetime


@dataclass(frozen=True)
class QuotationLineItem:
    id: str
    description: str
    hsn: str = ""                      # code HSN, transmis tel quel
    pcs: int = 1
    quantity: int = 1
    amount: Decimal = Decimal("0")     # hors taxes


@dataclass
class Quotation:
    # Identité
    id: str
    quotation_number: str              # indicatif, pas d'unicité garantie
    date: datetime

    # Contenu
    line_items: list[QuotationLineItem] = field(default_factory=list)
    net_amount: Decimal = Decimal("0")

    # Statut
    status: QuotationStatus = QuotationStatus.DRAFT


@dataclass
class Customer:
    # Identité
    id: str
    name: str
    phone: str
    location: str

    # Activité
    business_type: BusinessType
    daily_production: int              # kg / jour

    # Pipeline
    stage: Stage
    last_contacted: datetime
    created_at: datetime
    stage_changed_at: datetime
    next_follow_up_date: Optional[datetime] = None

    # Collections possédées
    notes: list[Note] = field(default_factory=list)                    # plus récente en tête
    quotations: list[Quotation] = field(default_factory=list)          # plus récent en tête
    stage_history: list[StageHistoryEntry] = field(default_factory=list)  # chronologique

    def find_quotation(self, quotation_id: str) -> Optional[Quotation]:
        return next((q for q in self.quotations if q.id == quotation_id), None)


# ─────────────────────────────────────────
# VALIDATION DES ENUMS
# Utilisée par l'import CSV et par l'API
# ─────────────────────────────────────────

def is_valid_stage(value) -> bool:
    return _match_stage(value) is not None


def is_valid_business_type(value) -> bool:
    return _match_business_type(value) is not None


def parse_stage(value) -> Stage:
    stage = _match_stage(value)
    if stage is None:
        allowed = ", ".join(s.value for s in STAGES)
        raise ValidationError(f"Invalid stage '{value}'. Must be one of: {allowed}.")
    return stage


def parse_business_type(value) -> BusinessType:
    business_type = _match_business_type(value)
    if business_type is None:
        raise ValidationError(
            f"Invalid business type '{value}'. Must be 'Murukku' or 'Snacks'."
        )
    return business_type


def _match_stage(value) -> Optional[Stage]:
    """Accepte l'enum, sa valeur ("Retail") ou son libellé ("Retail / Order Complete")."""
    if isinstance(value, Stage):
        return value
    if not isinstance(value, str):
        return None
    s = value.strip()
    for stage in Stage:
        if s == stage.value or s == stage.label:
            return stage
    return None


def _match_business_type(value) -> Optional[BusinessType]:
    if isinstance(value, BusinessType):
        return value
    if not isinstance(value, str):
        return None
    try:
        return BusinessType(value.strip())
    except ValueError:
        return None


# ─────────────────────────────────────────
# FACTORY
# ─────────────────────────────────────────

def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12].upper()}"


def validate_details(
    name: str,
    phone: str,
    location: str,
    business_type,
    daily_production
) -> dict:
    """
    Valide les champs saisis à la main (création ou édition).
    Retourne les valeurs normalisées, ou lève ValidationError
    avant toute mutation.
    """
    cleaned = {
        "name": (name or "").strip(),
        "phone": (phone or "").strip(),
        "location": (location or "").strip(),
    }

    for key, value in cleaned.items():
        if not value:
            raise ValidationError(f"'{key}' is required.")

    cleaned["business_type"] = parse_business_type(business_type)
    cleaned["daily_production"] = parse_daily_production(daily_production)
    return cleaned


def parse_daily_production(value) -> int:
    """Entier strictement positif. "12.5", "abc", 0 ou -5 sont refusés."""
    if isinstance(value, bool):
        raise ValidationError("'dailyProduction' must be a positive number.")
    try:
        if isinstance(value, str):
            number = int(value.strip())
        elif isinstance(value, int):
            number = value
        elif isinstance(value, (float, Decimal)) and value == int(value):
            number = int(value)
        else:
            raise ValueError(value)
    except (ValueError, TypeError, OverflowError):
        raise ValidationError("'dailyProduction' must be a positive number.")

    if number <= 0:
        raise ValidationError("'dailyProduction' must be a positive number.")
    return number


def new_customer(
    name: str,
    phone: str,
    location: str,
    business_type,
    daily_production,
    stage=Stage.ENQUIRY,
    now: Optional[datetime] = None,
    customer_id: Optional[str] = None
) -> Customer:
    """
    Crée un client neuf.
    L'historique démarre avec l'entrée de création {None → stage}.
    """
    now = now or datetime.now()
    details = validate_details(name, phone, location, business_type, daily_production)
    initial_stage = parse_stage(stage)

    return Customer(
        id=customer_id or new_id("CUST"),
        stage=initial_stage,
        last_contacted=now,
        created_at=now,
        stage_changed_at=now,
        next_follow_up_date=None,
        notes=[],
        quotations=[],
        stage_history=[StageHistoryEntry(None, initial_stage, now)],
        **details
    )


# ─────────────────────────────────────────
# SÉRIALISATION
# ─────────────────────────────────────────

def serialize(obj: Any) -> Any:
    """
    Convertit un modèle (ou une liste de modèles) en dict compatible JSON.
    datetime → str ISO, Enum → valeur, Decimal → str (exact).
    """
    raw = asdict(obj) if is_dataclass(obj) else obj

    def clean(value):
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, Decimal):
            return str(value)
        if is_dataclass(value):
            return clean(asdict(value))
        if isinstance(value, dict):
            return {k: clean(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return [clean(v) for v in value]
        return value

    result = clean(raw)

    if isinstance(obj, Customer):
        result["stage_label"] = obj.stage.label

    return result
