# services/notification.py

import os
import base64
import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)

RESEND_URL = "https://api.resend.com/emails"


# ─────────────────────────────────────────
# EMAIL (via Resend)
# ─────────────────────────────────────────

def send_email(
    to: str | list[str],
    subject: str,
    body: str,
    attachments: Optional[dict[str, bytes]] = None
) -> bool:
    """
    Envoie un email texte via Resend.

    attachments : {"nom_fichier.csv": contenu} → encodés en base64
    Retourne False sans lever si la clé manque, si aucun
    destinataire valide n'est fourni ou si Resend répond en erreur.
    """
    api_key = os.environ.get("RESEND_API_KEY", "")
    if not api_key:
        logger.error("RESEND_API_KEY non configuré")
        return False

    recipients = _clean_recipients(to)
    if not recipients:
        logger.error(f"Aucun destinataire valide pour « {subject} »")
        return False

    sender_name = os.environ.get("RESEND_FROM_NAME", "Sales CRM")
    sender_email = os.environ.get("RESEND_FROM_EMAIL", "crm@srilakshmi.example")

    payload = {
        "from": f"{sender_name} <{sender_email}>",
        "to": recipients,
        "subject": subject,
        "text": body,
    }
    if attachments:
        payload["attachments"] = [
            {"filename": name, "content": base64.b64encode(content).decode("ascii")}
            for name, content in attachments.items()
        ]

    try:
        response = requests.post(
            RESEND_URL,
            headers={"Authorization": f"Bearer {api_key}"},
            json=payload,
            timeout=15
        )
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"Erreur envoi email « {subject} » : {e}")
        return False

    logger.info(
        f"Email « {subject} » envoyé à {len(recipients)} destinataire(s)"
        f"{f', {len(attachments)} pièce(s) jointe(s)' if attachments else ''}"
    )
    return True


def _clean_recipients(to: str | list[str]) -> list[str]:
    raw = to.split(",") if isinstance(to, str) else to
    return [address.strip() for address in raw if address and "@" in address]


# ─────────────────────────────────────────
# SLACK (via webhook)
# ─────────────────────────────────────────

def send_slack(
    title: str,
    fields: Optional[dict[str, str]] = None,
    webhook_url: Optional[str] = None
) -> bool:
    """
    Poste un résumé dans le canal commercial.

    fields : {"Bookings": "2", "Conversion": "40.0%"} → bloc de champs
    Silencieux (False) si aucun webhook n'est configuré.
    """
    url = webhook_url or os.environ.get("SLACK_WEBHOOK_URL", "")
    if not url:
        logger.debug("SLACK_WEBHOOK_URL absent, message Slack ignoré")
        return False

    blocks = [{"type": "section", "text": {"type": "mrkdwn", "text": f"*{title}*"}}]
    if fields:
        # Slack limite un bloc section à 10 champs
        blocks.append({
            "type": "section",
            "fields": [
                {"type": "mrkdwn", "text": f"*{label}*\n{value}"}
                for label, value in list(fields.items())[:10]
            ]
        })

    try:
        response = requests.post(url, json={"text": title, "blocks": blocks}, timeout=10)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"Erreur Slack : {e}")
        return False

    logger.info(f"Slack : « {title} » publié")
    return True
