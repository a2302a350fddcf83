"""
Gestionnaire d'erreurs centralisé pour turnstile-kit.

Deux familles d'erreurs:
- Validation du token: transport, statut HTTP et réponse illisible sont levés,
  un token refusé (success=false) n'est PAS une erreur.
- Widget: chargement du script et création d'instance, remontés via on_error.
"""

from __future__ import annotations

import logging
import traceback
from datetime import datetime, timezone

from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class TurnstileKitError(Exception):
    """Exception de base pour turnstile-kit."""

    def __init__(
        self,
        message: str,
        component: str = "unknown",
        operation: str = "unknown",
        details: dict | None = None,
        status_code: int = 500
    ):
        self.message = message
        self.component = component
        self.operation = operation
        self.details = details or {}
        self.status_code = status_code
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)


class TurnstileConfigurationError(TurnstileKitError):
    """Options de validation invalides ou clé secrète absente."""

    def __init__(self, message: str, details: dict | None = None, status_code: int = 400):
        super().__init__(
            message=message,
            component="validator",
            operation="options",
            details=details,
            status_code=status_code
        )


class TurnstileTransportError(TurnstileKitError):
    """Impossible de joindre l'endpoint siteverify, ou statut non-2xx."""

    def __init__(
        self,
        message: str,
        upstream_status: int | None = None,
        details: dict | None = None
    ):
        self.upstream_status = upstream_status
        super().__init__(
            message=f"Erreur Turnstile: {message}",
            component="validator",
            operation="siteverify",
            details=details,
            status_code=502
        )


class TurnstileResponseError(TurnstileKitError):
    """Réponse 2xx qui n'est pas du JSON ou n'a pas la forme attendue."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(
            message=f"Réponse Turnstile invalide: {message}",
            component="validator",
            operation="parse_response",
            details=details,
            status_code=502
        )


class WidgetError(TurnstileKitError):
    """Échec du chargement du script ou de la création d'une instance."""

    def __init__(
        self,
        message: str,
        operation: str = "mount",
        original: Exception | None = None,
        details: dict | None = None
    ):
        self.original = original
        if original is not None:
            details = {"type": type(original).__name__, "error": str(original), **(details or {})}
        super().__init__(
            message=message,
            component="widget",
            operation=operation,
            details=details,
            status_code=500
        )


class ErrorHandler:
    """
    Gestionnaire centralisé des erreurs.

    Formate les erreurs de manière cohérente et les journalise.
    """

    def handle_error(
        self,
        error: Exception,
        component: str = "unknown",
        operation: str = "unknown"
    ) -> dict:
        """
        Gère une erreur de manière centralisée.

        Args:
            error: L'exception capturée.
            component: Composant où l'erreur s'est produite.
            operation: Opération en cours.

        Returns:
            Dictionnaire avec les détails de l'erreur loguée.
        """
        if isinstance(error, TurnstileKitError):
            error_data = {
                "component": error.component,
                "operation": error.operation,
                "message": error.message,
                "details": error.details,
                "status_code": error.status_code,
                "timestamp": error.timestamp
            }
        else:
            error_data = {
                "component": component,
                "operation": operation,
                "message": str(error),
                "details": {
                    "type": type(error).__name__,
                    "traceback": traceback.format_exc()
                },
                "status_code": 500,
                "timestamp": datetime.now(timezone.utc).isoformat()
            }

        logger.error(
            f"[{error_data['component']}:{error_data['operation']}] "
            f"{error_data['message']}"
        )

        return error_data


# Instance globale
error_handler = ErrorHandler()


async def global_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Handler global pour FastAPI.

    Capture toutes les exceptions non gérées et les formate en JSON.
    """
    if isinstance(exc, TurnstileKitError):
        error_handler.handle_error(exc)
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "status": "error",
                "message": exc.message,
                "component": exc.component,
                "timestamp": exc.timestamp
            }
        )

    if isinstance(exc, HTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "status": "error",
                "message": exc.detail,
                "timestamp": datetime.now(timezone.utc).isoformat()
            }
        )

    # Erreur inattendue
    error_data = error_handler.handle_error(
        exc,
        component="unhandled",
        operation="global_handler"
    )

    return JSONResponse(
        status_code=500,
        content={
            "status": "error",
            "message": "Une erreur interne s'est produite",
            "timestamp": error_data["timestamp"]
        }
    )
