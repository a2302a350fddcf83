"""
Modèles Pydantic pour turnstile-kit.

Modules:
- turnstile: Props du widget, options et réponse de validation
"""

from turnstile_kit.models.turnstile import (
    TurnstileCallbacks,
    TurnstileProps,
    TurnstileValidateOptions,
    TurnstileValidateResponse,
)

__all__ = [
    "TurnstileCallbacks",
    "TurnstileProps",
    "TurnstileValidateOptions",
    "TurnstileValidateResponse",
]
