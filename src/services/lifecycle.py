# services/lifecycle.py

"""
Opérations qui font évoluer un client.

Chaque opération reçoit le client courant et retourne un client mis à jour.
Le client reçu n'est jamais modifié : c'est l'appelant (le store) qui
remplace l'enregistrement stocké.

Toute validation est faite avant la moindre modification :
une opération s'applique entièrement ou pas du tout.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Mapping, Optional

from errors import ValidationError, NotFoundError
from models import (
    Customer, Note, Quotation, QuotationStatus, Stage, StageHistoryEntry,
    new_id, parse_stage, validate_details
)
from services.ledger import build_line_items, compute_totals

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────
# STAGE
# ─────────────────────────────────────────

def change_stage(
    customer: Customer,
    new_stage,
    now: Optional[datetime] = None
) -> Customer:
    """
    Déplace le client vers n'importe quel stage.
    Même stage → aucun changement, pas d'entrée d'historique.
    Tout changement de stage compte comme un contact.
    """
    target = parse_stage(new_stage)

    if target == customer.stage:
        return customer

    now = now or datetime.now()
    entry = StageHistoryEntry(
        from_stage=customer.stage,
        to_stage=target,
        changed_at=now
    )

    logger.info(
        f"[lifecycle] {customer.id} : {customer.stage.value} → {target.value}"
    )

    return replace(
        customer,
        stage=target,
        stage_changed_at=now,
        last_contacted=now,
        stage_history=[*customer.stage_history, entry]
    )


# ─────────────────────────────────────────
# NOTES & RELANCES
# ─────────────────────────────────────────

def add_note(
    customer: Customer,
    content: str,
    entry_date: Optional[datetime] = None,
    next_follow_up_date: Optional[datetime] = None,
    now: Optional[datetime] = None
) -> Customer:
    """
    Ajoute une note en tête de liste.

    entry_date          : date de la note, peut être antidatée
    next_follow_up_date : prochaine relance, None l'efface

    last_contacted prend l'heure réelle, indépendamment de entry_date.
    """
    text = (content or "").strip()
    if not text:
        raise ValidationError("Note content cannot be empty.")

    now = now or datetime.now()
    note = Note(
        id=new_id("N"),
        content=text,
        created_at=entry_date or now
    )

    return replace(
        customer,
        notes=[note, *customer.notes],
        last_contacted=now,
        next_follow_up_date=next_follow_up_date
    )


# ─────────────────────────────────────────
# DEVIS
# ─────────────────────────────────────────

def save_quotation(
    customer: Customer,
    quotation_data: Mapping,
    existing_id: Optional[str] = None,
    now: Optional[datetime] = None
) -> Customer:
    """
    Crée ou met à jour un devis.

    quotation_data :
    {
        "quotation_number": str,
        "date": datetime,
        "line_items": [ {description, hsn, pcs, quantity, amount}, ... ],
        "status": "Draft" | "Sent"      # optionnel
    }

    existing_id trouvé   → mise à jour sur place (même id, statut conservé
                            sauf surcharge explicite)
    existing_id inconnu  → nouveau devis Draft, ajouté en tête

    Le montant net est toujours recalculé. Un devis Accepted est figé :
    le modifier lève ValidationError.
    """
    now = now or datetime.now()

    line_items = build_line_items(quotation_data.get("line_items"))
    status_override = _parse_status_override(quotation_data.get("status"))
    net_amount = compute_totals(line_items)["net_amount"]

    quotation_number = str(quotation_data.get("quotation_number") or "").strip()
    if not quotation_number:
        raise ValidationError("Quotation number is required.")

    quotation_date = quotation_data.get("date") or now

    existing = customer.find_quotation(existing_id) if existing_id else None

    if existing is not None:
        if existing.status == QuotationStatus.ACCEPTED:
            raise ValidationError(
                f"Quotation {existing.quotation_number} is already accepted and cannot be edited."
            )

        updated = replace(
            existing,
            quotation_number=quotation_number,
            date=quotation_date,
            line_items=line_items,
            net_amount=net_amount,
            status=status_override or existing.status
        )
        quotations = [updated if q.id == existing.id else q for q in customer.quotations]
        logger.info(f"[lifecycle] {customer.id} : devis {updated.id} mis à jour")

    else:
        created = Quotation(
            id=new_id("Q"),
            quotation_number=quotation_number,
            date=quotation_date,
            line_items=line_items,
            net_amount=net_amount,
            status=status_override or QuotationStatus.DRAFT
        )
        quotations = [created, *customer.quotations]
        logger.info(f"[lifecycle] {customer.id} : devis {created.id} créé")

    return replace(customer, quotations=quotations)


def mark_quotation_sent(customer: Customer, quotation_id: str) -> Customer:
    """Draft → Sent. Déjà Sent : rien à faire. Accepted : refusé."""
    quotation = _get_quotation(customer, quotation_id)

    if quotation.status == QuotationStatus.SENT:
        return customer
    if quotation.status == QuotationStatus.ACCEPTED:
        raise ValidationError(
            f"Quotation {quotation.quotation_number} is already accepted."
        )

    return _replace_quotation(
        customer, replace(quotation, status=QuotationStatus.SENT)
    )


def confirm_order(
    customer: Customer,
    quotation_id: str,
    now: Optional[datetime] = None
) -> Customer:
    """
    Confirme la commande d'un devis.
    → statut Accepted (sans retour possible)
    → le client passe en Booking s'il n'y est pas déjà

    Idempotent : confirmer deux fois n'ajoute aucune entrée d'historique.
    """
    quotation = _get_quotation(customer, quotation_id)
    now = now or datetime.now()

    updated = customer
    if quotation.status != QuotationStatus.ACCEPTED:
        updated = _replace_quotation(
            customer, replace(quotation, status=QuotationStatus.ACCEPTED)
        )
        logger.info(
            f"[lifecycle] {customer.id} : commande confirmée "
            f"({quotation.quotation_number}, {quotation.net_amount})"
        )

    if updated.stage != Stage.BOOKING:
        updated = change_stage(updated, Stage.BOOKING, now=now)

    return updated


# ─────────────────────────────────────────
# FICHE CLIENT
# ─────────────────────────────────────────

def update_details(customer: Customer, **fields) -> Customer:
    """
    Modifie les informations de la fiche (nom, téléphone, ville,
    activité, production). Le stage, les dates et les collections
    ne passent jamais par ici.
    """
    editable = {"name", "phone", "location", "business_type", "daily_production"}
    unknown = set(fields) - editable
    if unknown:
        raise ValidationError(f"Cannot edit field(s): {', '.join(sorted(unknown))}.")

    merged = {key: fields.get(key, getattr(customer, key)) for key in editable}
    details = validate_details(**merged)

    return replace(customer, **details)


# ─────────────────────────────────────────
# UTILITAIRES INTERNES
# ─────────────────────────────────────────

def _get_quotation(customer: Customer, quotation_id: str) -> Quotation:
    quotation = customer.find_quotation(quotation_id)
    if quotation is None:
        raise NotFoundError(
            f"Quotation {quotation_id} not found for customer {customer.id}."
        )
    return quotation


def _replace_quotation(customer: Customer, quotation: Quotation) -> Customer:
    return replace(
        customer,
        quotations=[quotation if q.id == quotation.id else q for q in customer.quotations]
    )


def _parse_status_override(value) -> Optional[QuotationStatus]:
    if value is None or value == "":
        return None
    try:
        status = QuotationStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid quotation status '{value}'.")
    if status == QuotationStatus.ACCEPTED:
        raise ValidationError("A quotation can only be accepted by confirming the order.")
    return status
