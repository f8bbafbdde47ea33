# prompts.py


# ─────────────────────────────────────────
# RELANCE CLIENT
# ─────────────────────────────────────────

def follow_up_message() -> str:
    """
    Message de relance pour faire avancer le client dans le pipeline.
    Court, sans formule d'appel, en anglais.
    Utilisé avec llm.draft()
    """
    return (
        "Based on this information, generate a short, effective and friendly "
        "follow-up message to continue the conversation with this customer. "
        "The goal is to move the customer to the next stage of the pipeline. "
        "Do not include greetings like 'Dear [Name]'. "
        "Just provide the message content."
    )


# ─────────────────────────────────────────
# RAPPORT QUOTIDIEN
# ─────────────────────────────────────────

def daily_report_subject(date_label: str, follow_ups: int, stage_changes: int) -> str:
    return (
        f"CRM — {date_label} — {follow_ups} follow-up(s), "
        f"{stage_changes} stage change(s)"
    )
