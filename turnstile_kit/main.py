"""
Point d'entrée HTTP de turnstile-kit.

FastAPI application avec:
- Page de démonstration du widget
- Endpoint de validation de token
- Middleware de logging
- Gestion globale des erreurs
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request

from turnstile_kit import __version__
from turnstile_kit.core.config import settings
from turnstile_kit.core.error_handler import global_exception_handler, TurnstileKitError

# Configuration du logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Gestionnaire de cycle de vie de l'application.

    Signale au démarrage les clés Turnstile manquantes.
    """
    logger.info(f"Demarrage de {settings.app_name} en mode {settings.app_env}")

    if not settings.turnstile_secret_key:
        logger.warning("TURNSTILE_SECRET_KEY absente: /verify retournera 503")
    if not settings.turnstile_site_key:
        logger.warning("TURNSTILE_SITE_KEY absente: /widget retournera 503")

    yield

    logger.info(f"Arret de {settings.app_name}")


app = FastAPI(
    title=settings.app_name,
    description="""
    ## turnstile-kit - Widget et validation Cloudflare Turnstile

    - **GET /api/v1/turnstile/widget**: page HTML avec un widget
    - **POST /api/v1/turnstile/verify**: validation d'un token côté serveur
    """,
    version=__version__,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    openapi_url="/openapi.json" if settings.debug else None,
    lifespan=lifespan
)


# Middleware de logging des requêtes
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log toutes les requêtes entrantes."""
    start_time = datetime.now(timezone.utc)

    logger.info(
        f"📥 {request.method} {request.url.path} "
        f"from {request.client.host if request.client else 'unknown'}"
    )

    response = await call_next(request)

    process_time = (datetime.now(timezone.utc) - start_time).total_seconds()

    logger.info(
        f"📤 {request.method} {request.url.path} "
        f"- {response.status_code} ({process_time:.3f}s)"
    )

    response.headers["X-Process-Time"] = str(process_time)

    return response


@app.exception_handler(TurnstileKitError)
async def turnstile_kit_exception_handler(request: Request, exc: TurnstileKitError):
    """Handler pour les exceptions turnstile-kit."""
    return await global_exception_handler(request, exc)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Handler pour toutes les autres exceptions."""
    return await global_exception_handler(request, exc)


# === Routes de base ===

@app.get("/", tags=["health"])
async def root():
    """Page d'accueil de l'API."""
    return {
        "name": settings.app_name,
        "version": __version__,
        "status": "running",
        "environment": settings.app_env,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@app.get("/health", tags=["health"])
async def health_check():
    """
    Endpoint de health check.

    Indique si les clés Turnstile sont configurées, sans appel réseau.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {
            "turnstile_secret_key": "configured" if settings.turnstile_secret_key else "missing",
            "turnstile_site_key": "configured" if settings.turnstile_site_key else "missing",
        }
    }


# === Import des routers ===

from turnstile_kit.api.turnstile import router as turnstile_router

app.include_router(turnstile_router)


# === Point d'entrée pour uvicorn ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "turnstile_kit.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info"
    )
