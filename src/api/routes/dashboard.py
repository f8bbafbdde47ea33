# api/routes/dashboard.py

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from api.dependencies import verify_api_key, get_store
from config import settings
from reporting.dashboard import build_summary, build_daily_report
from reporting.daily_report import send_daily_report
from services.store import CustomerStore

router = APIRouter()
logger = logging.getLogger(__name__)


class SendReportRequest(BaseModel):
    recipients: Optional[list[str]] = None     # défaut : REPORT_RECIPIENTS


@router.get("/summary")
def get_summary(
    _: str = Depends(verify_api_key),
    store: CustomerStore = Depends(get_store),
) -> dict:
    return build_summary(
        store.all(), pending_threshold_days=settings.pending_follow_up_days
    )


@router.get("/reports/today")
def get_today_report(
    _: str = Depends(verify_api_key),
    store: CustomerStore = Depends(get_store),
) -> dict:
    return build_daily_report(store.all())


@router.post("/reports/today/send")
def send_today_report(
    req: SendReportRequest,
    _: str = Depends(verify_api_key),
    store: CustomerStore = Depends(get_store),
) -> dict:
    recipients = req.recipients or settings.report_recipients
    if not recipients:
        raise HTTPException(status_code=422, detail="No report recipients configured.")

    sent = send_daily_report(
        store.all(),
        recipients,
        pending_threshold_days=settings.pending_follow_up_days
    )
    if not sent:
        logger.error("Rapport du jour non envoyé")
        raise HTTPException(status_code=502, detail="Report could not be sent.")

    return {"sent": True, "recipients": recipients}
