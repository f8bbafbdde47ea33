# api/routes/transfers.py

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from pydantic import BaseModel

from api.dependencies import verify_api_key, get_store
from config import settings
from connectors import get_exporter, list_supported_formats
from connectors.csv_import import SAMPLE_CSV, import_customers
from models import serialize
from services import queries
from services.store import CustomerStore

router = APIRouter()
logger = logging.getLogger(__name__)


class ImportRequest(BaseModel):
    csv: str


# ─────────────────────────────────────────
# IMPORT
# ─────────────────────────────────────────

@router.post("/imports/customers", status_code=201)
def import_customers_csv(
    req: ImportRequest,
    _: str = Depends(verify_api_key),
    store: CustomerStore = Depends(get_store),
) -> dict:
    imported = import_customers(store, req.csv)
    logger.info(f"Import CSV : {len(imported)} clients ajoutés")
    return {
        "imported": len(imported),
        "customers": [serialize(c) for c in imported]
    }


@router.get("/imports/customers/sample")
def sample_csv(_: str = Depends(verify_api_key)) -> Response:
    return Response(
        content=SAMPLE_CSV,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="sample_customers.csv"'}
    )


# ─────────────────────────────────────────
# EXPORT
# Mêmes filtres que la liste : on exporte ce qui est affiché.
# ─────────────────────────────────────────

@router.get("/exports/customers")
def export_customers(
    format: str = "csv",
    stage: list[str] = Query(default=[]),
    pending: bool = False,
    created: str = "all",
    sort: Optional[str] = None,
    direction: str = "ascending",
    _: str = Depends(verify_api_key),
    store: CustomerStore = Depends(get_store),
) -> Response:
    exporter = get_exporter(format, settings)
    if exporter is None:
        raise HTTPException(
            status_code=422,
            detail=f"Unsupported format '{format}'. Use one of: {', '.join(list_supported_formats())}"
        )

    customers = queries.customer_view(
        store.all(),
        stages=stage,
        pending_only=pending,
        created=created,
        sort_key=sort,
        direction=direction,
        pending_threshold_days=settings.pending_follow_up_days
    )

    content = exporter.export_customers(customers)
    filename = exporter.filename(f"customers-{datetime.now().strftime('%Y-%m-%d')}")

    return Response(
        content=content,
        media_type=exporter.media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )
