"""
Point d'entrée principal de l'API Dératisation.
Démarrage : uvicorn app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import app.models  # noqa: F401 (enregistre tous les modèles dans Base.metadata avant les routers)
from app.config import settings
from app.database import Base, engine
from app.exceptions import AuthorizationError, TransientStoreError
from app.routers import auth, interventions, photos, sites, stations, sync, users

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Hors production, crée les tables manquantes au démarrage (pas d'outil de migration)."""
    if settings.ENV != "production":
        Base.metadata.create_all(bind=engine)
        logger.info("Schéma de base vérifié (ENV=%s).", settings.ENV)
    yield


app = FastAPI(
    title="Dératisation API",
    description="API de suivi des interventions de dératisation (offline-first)",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# CORS : autorise tous les ports localhost en développement (à restreindre en production).
# allow_origin_regex est nécessaire pour les requêtes preflight POST avec Content-Type JSON.
app.add_middleware(
    CORSMiddleware,
    allow_origins=[],
    allow_origin_regex=r"https?://(localhost|127\.0\.0\.1)(:\d+)?",
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["Content-Type", "Authorization", "Accept"],
)


app.include_router(auth.router)
app.include_router(users.router)
app.include_router(sites.router)
app.include_router(stations.router)
app.include_router(interventions.router)
app.include_router(photos.router)
app.include_router(sync.router)


@app.exception_handler(AuthorizationError)
async def authorization_error_handler(request: Request, exc: AuthorizationError) -> JSONResponse:
    """Batch refusé en entier : rien n'a été écrit."""
    logger.warning("Accès refusé sur %s : %s", request.url.path, exc.message)
    return JSONResponse(status_code=403, content={"detail": exc.message, "code": exc.code})


@app.exception_handler(TransientStoreError)
async def transient_store_error_handler(request: Request, exc: TransientStoreError) -> JSONResponse:
    """Base indisponible : le mobile peut rejouer le batch complet (upserts idempotents)."""
    return JSONResponse(
        status_code=503,
        content={"detail": exc.message, "code": exc.code},
        headers={"Retry-After": "30"},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Intercepte toutes les exceptions non gérées pour garantir que la réponse 500
    passe bien par CORSMiddleware (qui injecte les headers CORS).
    Sans ce handler, ServerErrorMiddleware renvoie une réponse brute sans headers CORS,
    ce qui provoque une erreur "Failed to fetch" côté navigateur.
    """
    logger.error("Exception non gérée : %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Une erreur interne est survenue."},
    )


@app.get("/api/health", tags=["Santé"])
def health_check():
    """Vérifie que l'API est opérationnelle."""
    return {"status": "ok", "service": "Dératisation API", "version": "0.1.0"}
