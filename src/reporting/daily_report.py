# reporting/daily_report.py

import logging
from datetime import datetime
from typing import Iterable, Optional

from connectors.csv_export import CsvExporter
from models import Customer
from prompts import daily_report_subject
from reporting.dashboard import build_daily_report, build_summary
from services.notification import send_email, send_slack
from services.queries import DEFAULT_PENDING_DAYS, is_same_day

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────
# POINT D'ENTRÉE
# ─────────────────────────────────────────

def send_daily_report(
    customers: Iterable[Customer],
    recipients: list[str],
    now: Optional[datetime] = None,
    pending_threshold_days: int = DEFAULT_PENDING_DAYS
) -> bool:
    """
    Compile et envoie le rapport du jour.
    Déclenché à la demande depuis l'API (pas de tâche planifiée).

    → email texte + CSV des clients contactés aujourd'hui
    → résumé Slack si l'email est parti

    Retourne True si l'email a été envoyé.
    """
    if not recipients:
        logger.error("[daily_report] Aucun destinataire configuré")
        return False

    customers = list(customers)
    now = now or datetime.now()

    report = build_daily_report(customers, now=now)
    summary = build_summary(
        customers, now=now, pending_threshold_days=pending_threshold_days
    )

    subject = daily_report_subject(
        now.strftime("%d %B %Y"),
        len(report["follow_ups"]),
        len(report["stage_changes"])
    )

    contacted = [c for c in customers if is_same_day(c.last_contacted, now)]
    attachments = {}
    if contacted:
        exporter = CsvExporter()
        attachments[exporter.filename(f"contacted-{report['date']}")] = exporter.export_customers(contacted)

    success = send_email(
        to=recipients,
        subject=subject,
        body=build_body(report, summary),
        attachments=attachments or None
    )

    if success:
        logger.info(f"[daily_report] Envoyé à {len(recipients)} destinataire(s)")
        send_slack(subject, fields=slack_fields(summary))

    return success


def slack_fields(summary: dict) -> dict[str, str]:
    fields = {
        "Customers": str(summary["total_customers"]),
        "Bookings": str(summary["total_bookings"]),
        "Conversion": f"{summary['conversion_rate']}%",
        "Pending follow-ups": str(summary["pending_follow_ups"]),
    }
    for row in summary["leads_by_stage"]:
        fields[row["label"]] = str(row["count"])
    return fields


# ─────────────────────────────────────────
# CONSTRUCTION DU CORPS
# ─────────────────────────────────────────

def build_body(report: dict, summary: dict) -> str:
    """Corps texte brut. Structure fixe."""
    lines = []

    lines.append("Hello,")
    lines.append("")
    lines.append(f"Here is the sales pipeline report for {report['date']}.")
    lines.append("")

    # ── CHIFFRES ──
    lines.append("PIPELINE")
    lines.append(f"  Total customers    : {summary['total_customers']}")
    lines.append(f"  Bookings           : {summary['total_bookings']}")
    lines.append(f"  Conversion         : {summary['conversion_rate']}%")
    lines.append(f"  Pending follow-ups : {summary['pending_follow_ups']}")
    lines.append("")

    # ── RELANCES DU JOUR ──
    lines.append("TODAY'S FOLLOW-UPS")
    if report["follow_ups"]:
        for row in report["follow_ups"]:
            lines.append(f"  {row['time']}  {row['name']} ({row['phone']}) — {row['stage']}")
    else:
        lines.append("  No follow-ups recorded today.")
    lines.append("")

    # ── CHANGEMENTS DE STAGE ──
    lines.append("TODAY'S STAGE CHANGES")
    if report["stage_changes"]:
        for row in report["stage_changes"]:
            lines.append(f"  {row['time']}  {row['name']} ({row['phone']}) → {row['new_stage']}")
    else:
        lines.append("  No stage changes recorded today.")
    lines.append("")

    # ── À RAPPELER DEMAIN ──
    if summary["follow_ups_tomorrow"]:
        lines.append("TO CALL TOMORROW")
        for row in summary["follow_ups_tomorrow"]:
            lines.append(f"  {row['name']} ({row['phone']})")
        lines.append("")

    return "\n".join(lines)
