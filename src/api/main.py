# api/main.py

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routes import auth, customers, quotations, dashboard, transfers
from config import settings
from errors import CRMError, CustomerImportError, NotFoundError, ValidationError
from services.seed import demo_customers
from services.store import store

# Charge .env en local uniquement (en prod les vars sont injectées)
load_dotenv()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s : %(message)s",
)
logger = logging.getLogger("crm.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Sales CRM API — Démarrage ({settings.env})")
    if settings.seed_demo_data and len(store) == 0:
        store.add_many(demo_customers())
        logger.info(f"{len(store)} clients de démonstration chargés")
    yield
    logger.info("Sales CRM API — Arrêt")


app = FastAPI(
    title="Sales CRM API",
    version="1.0.0",
    description="Clients, pipeline commercial et devis GST",
    lifespan=lifespan,
)

# ─────────────────────────────────────────
# CORS
# FRONTEND_ORIGINS="https://crm.example.com,https://staging.crm.example.com"
# ─────────────────────────────────────────
LOCAL_ORIGINS = ["http://localhost:3000", "http://localhost:5173"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=sorted(set(LOCAL_ORIGINS + settings.cors_origins)),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],  # inclut X-API-KEY
)

# ─────────────────────────────────────────
# ROUTES
# ─────────────────────────────────────────
app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(customers.router, prefix="/customers", tags=["customers"])
app.include_router(quotations.router, tags=["quotations"])
app.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
app.include_router(transfers.router, tags=["imports-exports"])


@app.get("/")
def root() -> dict:
    return {"status": "ok", "service": "sales-crm-api"}

@app.get("/health")
def health() -> dict:
    return {"status": "ok", "service": "sales-crm-api", "customers": len(store)}

# ─────────────────────────────────────────
# ERREURS MÉTIER → HTTP
# Aucune mutation n'a eu lieu quand elles remontent ici.
# ─────────────────────────────────────────
_STATUS_BY_ERROR = {
    ValidationError: (422, "validation"),
    NotFoundError: (404, "not_found"),
    CustomerImportError: (400, "import"),
}


@app.exception_handler(CRMError)
async def crm_error_handler(request: Request, exc: CRMError):
    status_code, kind = _STATUS_BY_ERROR.get(type(exc), (400, "error"))
    content = {"error": kind, "detail": str(exc)}

    if isinstance(exc, CustomerImportError):
        content["row"] = exc.row
        logger.warning(f"Import CSV refusé : {exc}")

    return JSONResponse(status_code=status_code, content=content)

# ─────────────────────────────────────────
# ERREURS GLOBALES
# ─────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Erreur non gérée — {request.method} {request.url}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": "Erreur interne", "detail": str(exc)},
    )
