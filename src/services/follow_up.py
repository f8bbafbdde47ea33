# services/follow_up.py

import logging

from models import Customer
from prompts import follow_up_message
from services import llm

logger = logging.getLogger(__name__)


DISABLED_MESSAGE = "AI features are disabled. Please set your ANTHROPIC_API_KEY."
FALLBACK_MESSAGE = (
    "Sorry, I couldn't generate a message at this time. "
    "Please check the API key and configuration."
)


def suggest_follow_up(customer: Customer) -> str:
    """
    Propose un message de relance pour un client.

    Appel isolé : aucune erreur ne remonte vers l'appelant,
    on retourne toujours un texte affichable.
    """
    if not llm.is_configured():
        return DISABLED_MESSAGE

    try:
        text = llm.draft(build_snapshot(customer), follow_up_message())
    except Exception as e:
        logger.error(f"[follow_up] {customer.id} : {e}")
        return FALLBACK_MESSAGE

    if not text or not text.strip():
        return FALLBACK_MESSAGE

    return text.strip()


def build_snapshot(customer: Customer) -> dict:
    """Ce que le LLM voit du client. Rien de plus."""
    notes = [
        f"{note.content} (On {note.created_at.strftime('%d/%m/%Y')})"
        for note in customer.notes
    ]

    return {
        "customer": {
            "name": customer.name,
            "business_type": customer.business_type.value,
            "location": customer.location,
            "current_pipeline_stage": customer.stage.label,
        },
        "previous_communications": notes or ["No notes available."],
    }
