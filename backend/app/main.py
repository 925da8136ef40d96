"""
Point d'entrée principal de l'API EduTrack.
Démarrage : uvicorn app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

import app.models  # noqa: F401  (enregistre les modèles dans Base.metadata avant les routers)
from app.config import settings
from app.database import init_db
from app.routers import (
    admin,
    assignments,
    auth,
    courses,
    enrollments,
    messages,
    notifications,
    profiles,
    realtime,
    storage,
    submissions,
    teacher_requests,
)
from app.scheduler import start_scheduler, stop_scheduler
from app.services.storage_service import ensure_buckets

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Cycle de vie : création des tables (si activée) et des buckets, démarrage et arrêt du scheduler."""
    if settings.DB_AUTO_CREATE:
        init_db()
    ensure_buckets()
    start_scheduler()
    yield
    stop_scheduler()


app = FastAPI(
    title="EduTrack API",
    description="API de gestion des cours, inscriptions, devoirs et notes",
    version="0.1.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# CORS : tous les ports localhost en développement (à restreindre en production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[],
    allow_origin_regex=r"https?://(localhost|127\.0\.0\.1)(:\d+)?",
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["Content-Type", "Authorization", "Accept"],
)

app.include_router(auth.router)
app.include_router(profiles.router)
app.include_router(courses.router)
app.include_router(enrollments.router)
app.include_router(assignments.router)
app.include_router(submissions.router)
app.include_router(notifications.router)
app.include_router(messages.router)
app.include_router(teacher_requests.router)
app.include_router(storage.router)
app.include_router(admin.router)
app.include_router(realtime.router)

# Fichiers envoyés, servis sous /storage/<bucket>/<fichier> (dossiers créés au démarrage)
app.mount("/storage", StaticFiles(directory=settings.STORAGE_DIR, check_dir=False), name="storage")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Intercepte toutes les exceptions non gérées pour que la réponse 500
    passe par CORSMiddleware (qui injecte les headers CORS).
    """
    logger.error("Exception non gérée : %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Une erreur interne est survenue."},
    )


@app.get("/api/health", tags=["Santé"])
def health_check():
    """Vérifie que l'API est opérationnelle."""
    return {"status": "ok", "service": "EduTrack API", "version": "0.1.0"}
