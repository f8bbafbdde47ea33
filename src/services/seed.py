# services/seed.py

"""
Clients de démonstration chargés au démarrage de l'API
quand SEED_DEMO_DATA est actif.

Les dates sont relatives à `now` pour que le dashboard
ait toujours quelque chose à montrer.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from models import (
    BusinessType, Customer, Note, Quotation, QuotationLineItem,
    QuotationStatus, Stage, StageHistoryEntry
)
from services.ledger import compute_totals


def demo_customers(now: Optional[datetime] = None) -> list[Customer]:
    now = now or datetime.now()

    today = now
    tomorrow = now + timedelta(days=1)
    yesterday = now - timedelta(days=1)
    two_days_ago = now - timedelta(days=2)
    this_week = now - timedelta(days=3)
    a_week_ago = now - timedelta(days=8)
    two_weeks_ago = now - timedelta(days=14)
    last_month = now - timedelta(days=32)

    return [
        Customer(
            id="CUST-001",
            name="Anbu Cheliyan",
            phone="9876543210",
            location="Madurai",
            business_type=BusinessType.MURUKKU,
            daily_production=150,
            stage=Stage.ENQUIRY,
            notes=[
                Note("N1", "Called to ask about the new automatic murukku machine. Sent brochure.", today),
            ],
            last_contacted=today,
            created_at=today,
            stage_changed_at=today,
            stage_history=[StageHistoryEntry(None, Stage.ENQUIRY, today)],
            next_follow_up_date=tomorrow,
        ),
        Customer(
            id="CUST-002",
            name="Bhavani Snacks",
            phone="9123456780",
            location="Coimbatore",
            business_type=BusinessType.SNACKS,
            daily_production=300,
            stage=Stage.LEAD,
            notes=[
                Note("N2-1", "Interested in a full snacks production line. Needs a detailed quotation.", yesterday),
            ],
            last_contacted=yesterday,
            created_at=two_days_ago,
            stage_changed_at=yesterday,
            stage_history=[
                StageHistoryEntry(None, Stage.ENQUIRY, two_days_ago),
                StageHistoryEntry(Stage.ENQUIRY, Stage.LEAD, yesterday),
            ],
            next_follow_up_date=today,
        ),
        Customer(
            id="CUST-003",
            name="Chennai Sweets",
            phone="9988776655",
            location="Chennai",
            business_type=BusinessType.SNACKS,
            daily_production=500,
            stage=Stage.BOOKING,
            notes=[
                Note("N3-1", "Quotation accepted. Paid advance amount.", this_week),
            ],
            quotations=[
                _accepted_quotation("Q1", "SLI-Q-24-001", this_week, [
                    QuotationLineItem("LI-1", "Automatic Murukku Machine - Model X", "8438", 1, 1, Decimal("450000")),
                    QuotationLineItem("LI-2", "Installation & Training Charges", "9987", 1, 1, Decimal("25000")),
                ]),
            ],
            last_contacted=this_week,
            created_at=two_weeks_ago,
            stage_changed_at=this_week,
            stage_history=[
                StageHistoryEntry(None, Stage.ENQUIRY, two_weeks_ago),
                StageHistoryEntry(Stage.ENQUIRY, Stage.LEAD, a_week_ago),
                StageHistoryEntry(Stage.LEAD, Stage.BOOKING, this_week),
            ],
        ),
        Customer(
            id="CUST-004",
            name="Salem Murukku Center",
            phone="9001122334",
            location="Salem",
            business_type=BusinessType.MURUKKU,
            daily_production=200,
            stage=Stage.RETAIL,
            notes=[
                Note("N4-1", "Order delivered and installed.", last_month),
            ],
            quotations=[
                _accepted_quotation("Q2", "SLI-Q-24-002", last_month, [
                    QuotationLineItem("LI-3", "Semi-automatic Murukku Machine", "8438", 2, 2, Decimal("150000")),
                ]),
            ],
            last_contacted=last_month,
            created_at=last_month,
            stage_changed_at=last_month,
            stage_history=[StageHistoryEntry(None, Stage.RETAIL, last_month)],
        ),
        Customer(
            id="CUST-005",
            name="Tirunelveli Halwa King",
            phone="9556677889",
            location="Tirunelveli",
            business_type=BusinessType.SNACKS,
            daily_production=400,
            stage=Stage.LEAD,
            notes=[
                Note("N5-1", "Follow-up call scheduled for next week to discuss pricing.", this_week),
            ],
            last_contacted=this_week,
            created_at=a_week_ago,
            stage_changed_at=this_week,
            stage_history=[
                StageHistoryEntry(None, Stage.ENQUIRY, a_week_ago),
                StageHistoryEntry(Stage.ENQUIRY, Stage.LEAD, this_week),
            ],
            next_follow_up_date=today,
        ),
        # Sans contact depuis 8 jours → relance en attente
        Customer(
            id="CUST-006",
            name="Erode Crispies",
            phone="9112233445",
            location="Erode",
            business_type=BusinessType.SNACKS,
            daily_production=180,
            stage=Stage.ENQUIRY,
            last_contacted=a_week_ago,
            created_at=a_week_ago,
            stage_changed_at=a_week_ago,
            stage_history=[StageHistoryEntry(None, Stage.ENQUIRY, a_week_ago)],
        ),
    ]


def _accepted_quotation(
    quotation_id: str,
    number: str,
    date: datetime,
    items: list[QuotationLineItem]
) -> Quotation:
    return Quotation(
        id=quotation_id,
        quotation_number=number,
        date=date,
        line_items=items,
        net_amount=compute_totals(items)["net_amount"],
        status=QuotationStatus.ACCEPTED,
    )
