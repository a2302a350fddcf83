"""
Core components pour turnstile-kit.

Modules:
- config: Configuration Pydantic Settings
- error_handler: Hiérarchie d'erreurs et handler FastAPI
"""

from turnstile_kit.core.config import settings, get_settings

__all__ = ["settings", "get_settings"]
