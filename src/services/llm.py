# services/llm.py

import os
import logging
from typing import Optional

from anthropic import Anthropic

logger = logging.getLogger(__name__)

# ─────────────────────────────────────────
# MODÈLE
# Haiku suffit pour des messages de relance courts.
# LLM_MODEL permet de changer sans toucher au code.
# ─────────────────────────────────────────

HAIKU = "claude-haiku-4-5"

SYSTEM_PROMPT = (
    "You are a helpful assistant for a sales representative at "
    "Sri Lakshmi Industries, a company that sells food processing "
    "machinery like murukku and snacks makers. "
    "You write short, polite and professional messages in English."
)

# Au-delà, les notes les plus anciennes ne sont pas envoyées
MAX_LIST_ITEMS = 10

_client: Optional[Anthropic] = None


def is_configured() -> bool:
    return bool(os.environ.get("ANTHROPIC_API_KEY"))


def model_name() -> str:
    return os.environ.get("LLM_MODEL", HAIKU)


def _get_client() -> Anthropic:
    global _client
    if _client is None:
        _client = Anthropic(api_key=os.environ["ANTHROPIC_API_KEY"])
    return _client


# ─────────────────────────────────────────
# RÉDACTION
# ─────────────────────────────────────────

def draft(data: dict, instruction: str, max_tokens: int = 300) -> str:
    """
    Rédige un message court à partir d'un instantané client.

    data        : sections {"customer": {...}, "previous_communications": [...]}
    instruction : ce que le message doit accomplir (voir prompts.py)

    Retourne "" si l'appel échoue : l'appelant décide du texte de repli.
    """
    context = render_context(data)
    content = f"{context}\n\n{instruction}" if context else instruction

    try:
        response = _get_client().messages.create(
            model=model_name(),
            max_tokens=max_tokens,
            temperature=0.7,
            system=SYSTEM_PROMPT,
            messages=[{"role": "user", "content": content}]
        )
    except Exception as e:
        logger.error(f"LLM erreur ({model_name()}) : {e}")
        return ""

    text = "".join(
        block.text for block in response.content
        if getattr(block, "type", None) == "text"
    )
    logger.info(
        f"LLM [{model_name()}] {response.usage.input_tokens}in/"
        f"{response.usage.output_tokens}out tokens"
    )
    return text


def render_context(data: dict) -> str:
    """
    Une section par clé, en majuscules.

    {"customer": {"name": "Bhavani Snacks"}, "previous_communications": ["Called"]}
    →
    CUSTOMER
    - name: Bhavani Snacks

    PREVIOUS COMMUNICATIONS
    - Called
    """
    sections = []

    for key, value in (data or {}).items():
        lines = [key.replace("_", " ").upper()]

        if isinstance(value, dict):
            lines += [
                f"- {label}: {item}" for label, item in value.items()
                if item not in (None, "")
            ]
        elif isinstance(value, (list, tuple)):
            lines += [f"- {item}" for item in value[:MAX_LIST_ITEMS]]
        else:
            lines.append(f"- {value}")

        sections.append("\n".join(lines))

    return "\n\n".join(sections)
