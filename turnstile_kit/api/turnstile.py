"""
Endpoints Turnstile.

- GET  /api/v1/turnstile/widget : page HTML avec un widget
- POST /api/v1/turnstile/verify : validation d'un token côté serveur
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel, Field

from turnstile_kit.core.config import settings
from turnstile_kit.core.error_handler import TurnstileConfigurationError
from turnstile_kit.models.turnstile import (
    Appearance,
    Theme,
    TurnstileProps,
    WidgetSize,
)
from turnstile_kit.services.html_renderer import HtmlPage, HtmlWidgetRenderer
from turnstile_kit.services.validation_service import validate_turnstile_token
from turnstile_kit.services.widget import Turnstile
from turnstile_kit.utils.validators import clean_optional_string, get_client_ip

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/turnstile", tags=["turnstile"])


class VerifyRequest(BaseModel):
    """Corps JSON de /verify. remoteip est déduit de la requête si absent."""

    token: Optional[str] = Field(default=None, description="Token du widget")
    remoteip: Optional[str] = None
    idempotency_key: Optional[str] = None


@router.get(
    "/widget",
    response_class=HTMLResponse,
    summary="Page de démonstration du widget"
)
async def widget_page(
    theme: Theme = Query("auto"),
    size: WidgetSize = Query("normal"),
    appearance: Appearance = Query("always"),
    language: str = Query("auto"),
):
    """
    Rend une page HTML avec un widget configuré depuis TURNSTILE_SITE_KEY.

    Le formulaire poste le token (cf-turnstile-response) vers /verify.
    """
    if not settings.turnstile_site_key:
        raise HTTPException(
            status_code=503,
            detail={"status": "error", "message": "TURNSTILE_SITE_KEY non configurée"}
        )

    props = TurnstileProps(
        site_key=settings.turnstile_site_key,
        theme=theme,
        size=size,
        appearance=appearance,
        language=language,
    )
    page = HtmlPage(title=settings.app_name)
    errors: list[Exception] = []

    widget = Turnstile(
        props,
        HtmlWidgetRenderer(page),
        on_error=errors.append,
        loader=page.loader,
    )
    await widget.mount(page.container_for(props))

    if errors:
        raise HTTPException(
            status_code=500,
            detail={"status": "error", "message": "Rendu du widget impossible"}
        )

    return HTMLResponse(page.render(action_url=router.url_path_for("verify_token")))


@router.post(
    "/verify",
    summary="Validation d'un token Turnstile",
    description="Échange un token contre le verdict de l'endpoint siteverify."
)
async def verify_token(request: Request):
    """
    Valide un token avec la clé secrète configurée.

    Accepte du JSON ({token, remoteip, idempotency_key}) ou le formulaire
    du widget (champ cf-turnstile-response).

    Returns:
        La réponse siteverify, success=false compris (HTTP 200).

    Raises:
        HTTPException 400: Token manquant.
        TurnstileConfigurationError 503: Clé secrète absente.
        TurnstileTransportError / TurnstileResponseError 502.
    """
    if not settings.turnstile_secret_key:
        raise TurnstileConfigurationError(
            "TURNSTILE_SECRET_KEY non configurée",
            status_code=503
        )

    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            payload = VerifyRequest.model_validate(await request.json())
        except ValueError as e:
            logger.warning(f"Corps JSON invalide sur /verify: {type(e).__name__}")
            raise HTTPException(
                status_code=400,
                detail={"status": "error", "message": "Corps JSON invalide"}
            )
    else:
        form = await request.form()
        payload = VerifyRequest(
            token=form.get("cf-turnstile-response") or form.get("token"),
            remoteip=form.get("remoteip"),
            idempotency_key=form.get("idempotency_key"),
        )

    token = clean_optional_string(payload.token)
    if not token:
        raise HTTPException(
            status_code=400,
            detail={"status": "error", "message": "Token Turnstile manquant"}
        )

    remoteip = clean_optional_string(payload.remoteip) or get_client_ip(
        request.headers,
        request.client.host if request.client else None
    )

    result = await validate_turnstile_token({
        "token": token,
        "secret_key": settings.turnstile_secret_key,
        "remoteip": remoteip,
        "idempotency_key": clean_optional_string(payload.idempotency_key),
    })

    logger.info(f"Validation Turnstile pour {remoteip}: success={result.success}")

    return JSONResponse(content=result.to_dict())
