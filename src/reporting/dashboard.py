# reporting/dashboard.py

from datetime import datetime, timedelta
from typing import Iterable, Optional

from models import Customer, Stage, STAGES
from services.queries import (
    DEFAULT_PENDING_DAYS, count_by_stage, filter_pending_follow_up, is_same_day
)


BOOKED_STAGES = (Stage.BOOKING, Stage.RETAIL)


# ─────────────────────────────────────────
# DASHBOARD
# ─────────────────────────────────────────

def build_summary(
    customers: Iterable[Customer],
    now: Optional[datetime] = None,
    pending_threshold_days: int = DEFAULT_PENDING_DAYS
) -> dict:
    """
    Chiffres du tableau de bord.

    {
        "total_customers": int,
        "total_bookings": int,         # Booking + Retail
        "conversion_rate": float,      # %, 1 décimale
        "pending_follow_ups": int,
        "leads_by_stage": [{"stage", "label", "count"}, ...],
        "follow_ups_today": [...],
        "follow_ups_tomorrow": [...]
    }
    """
    customers = list(customers)
    now = now or datetime.now()
    tomorrow = now + timedelta(days=1)

    total = len(customers)
    bookings = [c for c in customers if c.stage in BOOKED_STAGES]
    conversion_rate = round(len(bookings) / total * 100, 1) if total else 0.0

    pending = filter_pending_follow_up(customers, pending_threshold_days, now=now)
    counts = count_by_stage(customers)

    return {
        "total_customers": total,
        "total_bookings": len(bookings),
        "conversion_rate": conversion_rate,
        "pending_follow_ups": len(pending),
        "leads_by_stage": [
            {"stage": stage.value, "label": stage.label, "count": counts[stage]}
            for stage in STAGES
        ],
        "follow_ups_today": [
            _reminder(c) for c in customers if is_same_day(c.next_follow_up_date, now)
        ],
        "follow_ups_tomorrow": [
            _reminder(c) for c in customers if is_same_day(c.next_follow_up_date, tomorrow)
        ],
    }


# ─────────────────────────────────────────
# RAPPORT DU JOUR
# ─────────────────────────────────────────

def build_daily_report(
    customers: Iterable[Customer],
    now: Optional[datetime] = None
) -> dict:
    """
    Ce qui s'est passé aujourd'hui :
    → clients contactés (last_contacted aujourd'hui)
    → clients qui ont changé de stage (stage_changed_at aujourd'hui)
    """
    customers = list(customers)
    now = now or datetime.now()

    return {
        "date": now.date().isoformat(),
        "follow_ups": [
            {
                "id": c.id,
                "name": c.name,
                "phone": c.phone,
                "stage": c.stage.label,
                "time": c.last_contacted.strftime("%H:%M"),
            }
            for c in customers if is_same_day(c.last_contacted, now)
        ],
        "stage_changes": [
            {
                "id": c.id,
                "name": c.name,
                "phone": c.phone,
                "new_stage": c.stage.label,
                "time": c.stage_changed_at.strftime("%H:%M"),
            }
            for c in customers if is_same_day(c.stage_changed_at, now)
        ],
    }


def _reminder(customer: Customer) -> dict:
    return {"id": customer.id, "name": customer.name, "phone": customer.phone}
