"""
turnstile-kit: widget et validation Cloudflare Turnstile.

Points d'entrée:
- Turnstile: adaptateur du widget (rendu, callbacks, démontage)
- validate_turnstile_token / validate: validation d'un token côté serveur
"""

__version__ = "1.0.0"

from turnstile_kit.models.turnstile import (
    TurnstileCallbacks,
    TurnstileProps,
    TurnstileValidateOptions,
    TurnstileValidateResponse,
)
from turnstile_kit.services.validation_service import (
    validate,
    validate_turnstile_token,
)
from turnstile_kit.services.widget import Turnstile, WidgetRenderer

__all__ = [
    "Turnstile",
    "WidgetRenderer",
    "validate",
    "validate_turnstile_token",
    "TurnstileCallbacks",
    "TurnstileProps",
    "TurnstileValidateOptions",
    "TurnstileValidateResponse",
]
