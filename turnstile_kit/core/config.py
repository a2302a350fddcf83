"""
Configuration centralisée pour turnstile-kit.

Utilise Pydantic Settings pour une validation stricte des variables d'environnement.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Configuration de l'application turnstile-kit.

    Toutes les variables sont chargées depuis l'environnement ou un fichier .env.
    Aucune n'est obligatoire : la bibliothèque reste utilisable sans .env,
    seules les routes HTTP ont besoin des clés Turnstile.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === API Settings ===
    app_name: str = Field(default="turnstile-kit", description="Nom de l'application")
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Environnement d'exécution"
    )
    debug: bool = Field(default=False, description="Mode debug")
    api_host: str = Field(default="0.0.0.0", description="Host de l'API")
    api_port: int = Field(default=8000, ge=1, le=65535, description="Port de l'API")

    # === Turnstile (Cloudflare CAPTCHA) ===
    turnstile_secret_key: str = Field(
        default="",
        description="Clé secrète Turnstile pour validation côté serveur"
    )
    turnstile_site_key: str = Field(
        default="",
        description="Clé site Turnstile pour le widget"
    )
    turnstile_script_url: str = Field(
        default="https://challenges.cloudflare.com/turnstile/v0/api.js",
        description="URL du script du widget"
    )

    @field_validator("turnstile_script_url")
    @classmethod
    def validate_script_url(cls, v: str) -> str:
        """Normalise l'URL en supprimant le slash final."""
        return v.rstrip("/")

    @property
    def is_production(self) -> bool:
        """Vérifie si l'environnement est en production."""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Vérifie si l'environnement est en développement."""
        return self.app_env == "development"


@lru_cache
def get_settings() -> Settings:
    """
    Retourne une instance singleton des settings.

    Utilise lru_cache pour éviter de recharger les settings à chaque appel.
    """
    return Settings()


# Instance globale pour import direct
settings = get_settings()
