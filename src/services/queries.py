# services/queries.py

"""
Vues en lecture seule sur la collection de clients.
Aucune fonction ne modifie les clients reçus.
"""

from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, Optional

from errors import ValidationError
from models import Customer, Stage, STAGES, parse_stage


DEFAULT_PENDING_DAYS = 7

CREATED_BUCKETS = ("all", "today", "yesterday", "week", "month")

SORT_KEYS = (
    "name", "phone", "location", "business_type", "daily_production",
    "stage", "last_contacted", "created_at", "stage_changed_at",
    "next_follow_up_date",
)

# Noms camelCase acceptés depuis l'ancien front
_SORT_KEY_ALIASES = {
    "businessType": "business_type",
    "dailyProduction": "daily_production",
    "lastContacted": "last_contacted",
    "createdAt": "created_at",
    "stageChangedAt": "stage_changed_at",
    "nextFollowUpDate": "next_follow_up_date",
}


# ─────────────────────────────────────────
# FILTRES
# ─────────────────────────────────────────

def filter_by_stages(customers: Iterable[Customer], stages: Iterable) -> list[Customer]:
    wanted = {parse_stage(s) for s in stages}
    return [c for c in customers if c.stage in wanted]


def filter_pending_follow_up(
    customers: Iterable[Customer],
    threshold_days: int = DEFAULT_PENDING_DAYS,
    now: Optional[datetime] = None
) -> list[Customer]:
    """
    Clients sans contact depuis strictement plus de threshold_days jours.
    Exactement 7×24h → pas en attente. 7×24h + 1s → en attente.
    """
    now = now or datetime.now()
    limit = timedelta(days=threshold_days)
    return [c for c in customers if now - c.last_contacted > limit]


def filter_by_created_bucket(
    customers: Iterable[Customer],
    bucket: str,
    now: Optional[datetime] = None
) -> list[Customer]:
    """
    Filtre sur la date de création, en heure locale.

    today     → depuis minuit
    yesterday → la journée calendaire précédente uniquement
    week      → depuis le dernier dimanche minuit
    month     → depuis le 1er du mois minuit
    all       → pas de filtre
    """
    if bucket not in CREATED_BUCKETS:
        raise ValidationError(
            f"Invalid date filter '{bucket}'. Must be one of: {', '.join(CREATED_BUCKETS)}."
        )

    customers = list(customers)
    if bucket == "all":
        return customers

    start, end = created_bucket_bounds(bucket, now or datetime.now())
    return [
        c for c in customers
        if c.created_at >= start and (end is None or c.created_at < end)
    ]


def created_bucket_bounds(bucket: str, now: datetime) -> tuple[datetime, Optional[datetime]]:
    today = start_of_day(now)

    if bucket == "today":
        return today, None
    if bucket == "yesterday":
        return today - timedelta(days=1), today
    if bucket == "week":
        # weekday() : lundi = 0 ; on veut dimanche = 0
        days_since_sunday = (today.weekday() + 1) % 7
        return today - timedelta(days=days_since_sunday), None
    if bucket == "month":
        return today.replace(day=1), None

    raise ValidationError(f"Invalid date filter '{bucket}'.")


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def is_same_day(first: Optional[datetime], second: datetime) -> bool:
    return first is not None and first.date() == second.date()


# ─────────────────────────────────────────
# TRI
# ─────────────────────────────────────────

def sort_by(
    customers: Iterable[Customer],
    key: str,
    direction: str = "ascending"
) -> list[Customer]:
    """
    Tri stable : à clé égale, l'ordre d'origine est conservé,
    dans les deux sens.

    Les stages suivent l'ordre du pipeline.
    Les valeurs vides (next_follow_up_date) passent après les autres
    en ordre croissant.
    """
    attribute = _SORT_KEY_ALIASES.get(key, key)
    if attribute not in SORT_KEYS:
        raise ValidationError(f"Cannot sort by '{key}'.")
    if direction not in ("ascending", "descending"):
        raise ValidationError(f"Invalid sort direction '{direction}'.")

    def sort_key(customer: Customer):
        value = getattr(customer, attribute)
        if value is None:
            return (1, 0)
        if isinstance(value, Stage):
            return (0, STAGES.index(value))
        if isinstance(value, Enum):
            return (0, value.value)
        return (0, value)

    # sorted() reste stable avec reverse=True
    return sorted(customers, key=sort_key, reverse=(direction == "descending"))


def customer_view(
    customers: Iterable[Customer],
    stages: Optional[Iterable] = None,
    pending_only: bool = False,
    created: str = "all",
    sort_key: Optional[str] = None,
    direction: str = "ascending",
    pending_threshold_days: int = DEFAULT_PENDING_DAYS,
    now: Optional[datetime] = None
) -> list[Customer]:
    """La liste telle qu'affichée : filtres combinés puis tri optionnel."""
    now = now or datetime.now()
    result = list(customers)

    if stages:
        result = filter_by_stages(result, stages)
    if pending_only:
        result = filter_pending_follow_up(result, pending_threshold_days, now=now)
    result = filter_by_created_bucket(result, created, now=now)
    if sort_key:
        result = sort_by(result, sort_key, direction)

    return result


# ─────────────────────────────────────────
# COMPTAGES
# ─────────────────────────────────────────

def count_by_stage(customers: Iterable[Customer]) -> dict[Stage, int]:
    counts = {stage: 0 for stage in STAGES}
    for customer in customers:
        counts[customer.stage] += 1
    return counts
