"""
Service pour la validation Turnstile (Cloudflare).

Une validation = un seul POST form-encoded vers siteverify, sans retry
ni cache. Un token refusé (success=false) est retourné normalement ;
seuls les échecs de transport ou de parsing lèvent une exception.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Union

import httpx
from pydantic import ValidationError

from turnstile_kit.core.error_handler import (
    TurnstileConfigurationError,
    TurnstileResponseError,
    TurnstileTransportError,
)
from turnstile_kit.models.turnstile import (
    TurnstileValidateOptions,
    TurnstileValidateResponse,
)

logger = logging.getLogger(__name__)

TURNSTILE_VERIFY_URL = "https://challenges.cloudflare.com/turnstile/v0/siteverify"

# https://developers.cloudflare.com/turnstile/get-started/server-side-validation/#error-codes
TURNSTILE_ERROR_CODES: dict[str, str] = {
    "missing-input-secret": "The secret parameter was not passed.",
    "invalid-input-secret": "The secret parameter was invalid, did not exist, or is a testing secret key with a non-testing response.",
    "missing-input-response": "The response parameter (token) was not passed.",
    "invalid-input-response": "The response parameter (token) is invalid or has expired.",
    "invalid-widget-id": "The widget ID extracted from the parsed site secret key was invalid or did not exist.",
    "invalid-parsed-secret": "The secret extracted from the parsed site secret key was invalid.",
    "bad-request": "The request was rejected because it was malformed.",
    "timeout-or-duplicate": "The response parameter (token) has already been validated before.",
    "internal-error": "An internal error happened while validating the response.",
}


def describe_error_codes(error_codes: Optional[list[str]]) -> list[str]:
    """
    Traduit les codes d'erreur Cloudflare en messages lisibles.

    Args:
        error_codes: Codes retournés par siteverify.

    Returns:
        Un message par code, le code lui-même s'il est inconnu.
    """
    return [TURNSTILE_ERROR_CODES.get(code, code) for code in error_codes or []]


def _build_options(
    options: Union[TurnstileValidateOptions, Mapping[str, Any]]
) -> TurnstileValidateOptions:
    if isinstance(options, TurnstileValidateOptions):
        return options
    try:
        return TurnstileValidateOptions.model_validate(dict(options))
    except ValidationError as e:
        # Le détail pydantic contient la valeur saisie: on ne garde que les champs
        fields = [".".join(str(loc) for loc in err["loc"]) for err in e.errors()]
        raise TurnstileConfigurationError(
            "Options de validation Turnstile invalides",
            details={"fields": fields}
        ) from None


async def _post_siteverify(
    client: httpx.AsyncClient,
    form_data: dict[str, str]
) -> httpx.Response:
    try:
        response = await client.post(TURNSTILE_VERIFY_URL, data=form_data)
    except httpx.HTTPError as e:
        logger.error(f"Erreur réseau Turnstile: {type(e).__name__}")
        raise TurnstileTransportError(
            f"requête siteverify impossible ({type(e).__name__})",
            details={"error": str(e)}
        ) from e

    if not response.is_success:
        logger.error(f"Turnstile siteverify a retourné le statut {response.status_code}")
        raise TurnstileTransportError(
            f"statut HTTP {response.status_code}",
            upstream_status=response.status_code
        )

    return response


def _parse_response(response: httpx.Response) -> TurnstileValidateResponse:
    try:
        body = response.json()
    except ValueError as e:
        raise TurnstileResponseError(
            "le corps n'est pas du JSON",
            details={"body": response.text[:200]}
        ) from e

    if not isinstance(body, dict):
        raise TurnstileResponseError(
            "objet JSON attendu",
            details={"type": type(body).__name__}
        )

    try:
        return TurnstileValidateResponse.model_validate(body)
    except ValidationError as e:
        raise TurnstileResponseError(
            "forme inattendue",
            details={"errors": e.errors(include_url=False, include_context=False, include_input=False)}
        ) from e


async def validate_turnstile_token(
    options: Union[TurnstileValidateOptions, Mapping[str, Any]],
    *,
    client: Optional[httpx.AsyncClient] = None
) -> TurnstileValidateResponse:
    """
    Vérifie un token Turnstile auprès de Cloudflare.

    Args:
        options: TurnstileValidateOptions ou dict équivalent
            (token, secret_key, remoteip, idempotency_key, sandbox).
        client: Client httpx à réutiliser. Sinon un client est ouvert
            pour l'appel.

    Returns:
        La réponse siteverify typée, que success soit True ou False.

    Raises:
        TurnstileConfigurationError: Token ou clé secrète vide.
        TurnstileTransportError: Endpoint injoignable ou statut non-2xx.
        TurnstileResponseError: Corps illisible ou de forme inattendue.
    """
    validate_options = _build_options(options)
    form_data = validate_options.to_form_data()

    if client is not None:
        response = await _post_siteverify(client, form_data)
    else:
        async with httpx.AsyncClient() as own_client:
            response = await _post_siteverify(own_client, form_data)

    result = _parse_response(response)

    if result.success:
        logger.debug(f"Turnstile valide pour {result.hostname or 'hôte inconnu'}")
    else:
        logger.warning(f"Turnstile invalide: {result.error_codes}")

    return result


# Alias court pour l'API publique
validate = validate_turnstile_token
