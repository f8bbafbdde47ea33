# config.py

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

# Charge .env en local uniquement (en prod les vars sont injectées)
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str) -> list[str]:
    return [v.strip() for v in os.getenv(name, "").split(",") if v.strip()]


@dataclass(frozen=True)
class Settings:
    env: str = os.getenv("ENV", "local")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Accès (vérification statique, pas de vraie sécurité)
    api_key: str = os.getenv("CRM_API_KEY", "sli-crm-local-key")
    admin_username: str = os.getenv("ADMIN_USERNAME", "admin")
    admin_password: str = os.getenv("ADMIN_PASSWORD", "admin")

    # Pipeline
    pending_follow_up_days: int = int(os.getenv("PENDING_FOLLOW_UP_DAYS", "7"))
    follow_up_default_days: int = int(os.getenv("FOLLOW_UP_DEFAULT_DAYS", "7"))
    quotation_prefix: str = os.getenv("QUOTATION_PREFIX", "SLI-Q")
    seed_demo_data: bool = _env_bool("SEED_DEMO_DATA", "true")

    # En-tête du devis PDF
    company_name: str = os.getenv("COMPANY_NAME", "SRI LAKSHMI INDUSTRIES")
    company_tagline: str = os.getenv("COMPANY_TAGLINE", "AUTOMATIC MURUKKU MACHINE MANUFACTURER")
    company_address: str = os.getenv(
        "COMPANY_ADDRESS",
        "7/126, Thirumangalam Main Road, A.Ramanathapuram, Madurai, Tamilnadu - 625 532"
    )
    company_gstin: str = os.getenv("COMPANY_GSTIN", "33CCWPP0457Q1ZP")
    company_contact: str = os.getenv("COMPANY_CONTACT", "7811029371")

    # Coordonnées bancaires du devis PDF
    bank_name: str = os.getenv("BANK_NAME", "HDFC BANK")
    bank_account_name: str = os.getenv("BANK_ACCOUNT_NAME", "SRI LAKSHMI INDUSTRIES")
    bank_account_number: str = os.getenv("BANK_ACCOUNT_NUMBER", "50200075776754")
    bank_ifsc: str = os.getenv("BANK_IFSC", "HDFC0005545")

    # Rapport quotidien
    report_recipients: list[str] = field(default_factory=lambda: _env_list("REPORT_RECIPIENTS"))

    # Front autorisé (CORS), en plus des ports de dev locaux
    cors_origins: list[str] = field(default_factory=lambda: _env_list("FRONTEND_ORIGINS"))


settings = Settings()
