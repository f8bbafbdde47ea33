# api/routes/auth.py

import logging
import secrets

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from config import settings

router = APIRouter()
logger = logging.getLogger(__name__)


class LoginRequest(BaseModel):
    username: str
    password: str


@router.post("/login")
def login(req: LoginRequest) -> dict:
    """
    Vérification statique des identifiants.
    Retourne la clé à envoyer ensuite dans X-API-KEY.
    """
    username_ok = secrets.compare_digest(req.username.encode(), settings.admin_username.encode())
    password_ok = secrets.compare_digest(req.password.encode(), settings.admin_password.encode())

    if not (username_ok and password_ok):
        logger.warning(f"Échec de connexion pour '{req.username}'")
        raise HTTPException(status_code=401, detail="Invalid username or password.")

    logger.info(f"Connexion : {req.username}")
    return {"api_key": settings.api_key, "username": req.username}
