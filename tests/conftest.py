# tests/conftest.py

import pytest
from dataclasses import replace
from datetime import datetime, timedelta
from decimal import Decimal

from models import (
    BusinessType, Customer, Note, Quotation, QuotationLineItem,
    QuotationStatus, Stage, StageHistoryEntry, new_customer
)
from services.store import CustomerStore


# ─────────────────────────────────────────
# FIXTURES — DONNÉES RÉALISTES
# Une date fixe pour que les filtres par date soient déterministes.
# Mercredi 12 juin 2024, 15h30 → semaine depuis dimanche 9 juin.
# ─────────────────────────────────────────

NOW = datetime(2024, 6, 12, 15, 30)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_customer(now):
    """
    Factory : un client Enquiry créé à `now`.
    Les champs de la fiche passent par new_customer(),
    les autres (dates, notes, devis...) sont posés ensuite.
    """

    def _make(customer_id=None, **overrides) -> Customer:
        details = {
            "name": "Madurai Snacks",
            "phone": "9876500001",
            "location": "Madurai",
            "business_type": "Snacks",
            "daily_production": 200,
            "stage": Stage.ENQUIRY,
        }
        for key in list(details):
            if key in overrides:
                details[key] = overrides.pop(key)

        customer = new_customer(customer_id=customer_id, now=now, **details)
        return replace(customer, **overrides) if overrides else customer

    return _make


@pytest.fixture
def draft_quotation(now):
    items = [
        QuotationLineItem("LI-A", "Automatic Murukku Machine", "8438", 1, 1, Decimal("100000")),
        QuotationLineItem("LI-B", "Installation", "9987", 1, 1, Decimal("5000")),
    ]
    return Quotation(
        id="Q-DRAFT",
        quotation_number="SLI-Q-2024-101",
        date=now,
        line_items=items,
        net_amount=Decimal("123900.00"),
        status=QuotationStatus.DRAFT,
    )


@pytest.fixture
def sample_customers(now):
    """
    5 clients, un par situation :
    → Enquiry contacté aujourd'hui
    → Lead sans contact depuis 10 jours (relance en attente)
    → Booking avec un devis accepté
    → Retail créé le mois dernier
    → Enquiry créé hier, relance prévue demain
    """
    yesterday = now - timedelta(days=1)
    ten_days_ago = now - timedelta(days=10)
    last_month = datetime(2024, 5, 20, 11, 0)

    accepted_items = [
        QuotationLineItem("LI-1", "Snacks Line", "8438", 1, 1, Decimal("200000")),
    ]

    return [
        Customer(
            id="CUST-A",
            name="Anbu Traders",
            phone="9000000001",
            location="Madurai",
            business_type=BusinessType.MURUKKU,
            daily_production=150,
            stage=Stage.ENQUIRY,
            last_contacted=now.replace(hour=10, minute=5),
            created_at=now.replace(hour=9),
            stage_changed_at=now.replace(hour=9),
            stage_history=[StageHistoryEntry(None, Stage.ENQUIRY, now.replace(hour=9))],
            next_follow_up_date=now.replace(hour=17),
        ),
        Customer(
            id="CUST-B",
            name="Bhavani Snacks",
            phone="9000000002",
            location="Coimbatore",
            business_type=BusinessType.SNACKS,
            daily_production=300,
            stage=Stage.LEAD,
            last_contacted=ten_days_ago,
            created_at=ten_days_ago,
            stage_changed_at=ten_days_ago,
            notes=[Note("N-B1", "Asked for price list.", ten_days_ago)],
            stage_history=[
                StageHistoryEntry(None, Stage.ENQUIRY, ten_days_ago),
                StageHistoryEntry(Stage.ENQUIRY, Stage.LEAD, ten_days_ago),
            ],
        ),
        Customer(
            id="CUST-C",
            name="Chennai Sweets",
            phone="9000000003",
            location="Chennai",
            business_type=BusinessType.SNACKS,
            daily_production=500,
            stage=Stage.BOOKING,
            last_contacted=now.replace(hour=11, minute=45),
            created_at=datetime(2024, 6, 10, 8, 0),
            stage_changed_at=now.replace(hour=11, minute=45),
            quotations=[
                Quotation(
                    id="Q-C1",
                    quotation_number="SLI-Q-2024-001",
                    date=datetime(2024, 6, 10, 8, 30),
                    line_items=accepted_items,
                    net_amount=Decimal("236000.00"),
                    status=QuotationStatus.ACCEPTED,
                )
            ],
            stage_history=[
                StageHistoryEntry(None, Stage.LEAD, datetime(2024, 6, 10, 8, 0)),
                StageHistoryEntry(Stage.LEAD, Stage.BOOKING, now.replace(hour=11, minute=45)),
            ],
        ),
        Customer(
            id="CUST-D",
            name="Salem Murukku Center",
            phone="9000000004",
            location="Salem",
            business_type=BusinessType.MURUKKU,
            daily_production=200,
            stage=Stage.RETAIL,
            last_contacted=last_month,
            created_at=last_month,
            stage_changed_at=last_month,
            stage_history=[StageHistoryEntry(None, Stage.RETAIL, last_month)],
        ),
        Customer(
            id="CUST-E",
            name="Erode Crispies",
            phone="9000000005",
            location="Erode",
            business_type=BusinessType.SNACKS,
            daily_production=180,
            stage=Stage.ENQUIRY,
            last_contacted=yesterday,
            created_at=yesterday,
            stage_changed_at=yesterday,
            stage_history=[StageHistoryEntry(None, Stage.ENQUIRY, yesterday)],
            next_follow_up_date=now + timedelta(days=1),
        ),
    ]


@pytest.fixture
def store(sample_customers):
    return CustomerStore(sample_customers)
