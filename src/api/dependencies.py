# api/dependencies.py

from fastapi import Header, HTTPException

from config import settings
from services.store import CustomerStore, store


def verify_api_key(x_api_key: str = Header(...)) -> str:
    """
    Auth V1 : une seule API key pour toute l'équipe commerciale.
    Header attendu : X-API-KEY
    """
    if x_api_key != settings.api_key:
        raise HTTPException(status_code=401, detail="Unauthorized")

    return x_api_key


def get_store() -> CustomerStore:
    """Store du process. Remplacé dans les tests via dependency_overrides."""
    return store
