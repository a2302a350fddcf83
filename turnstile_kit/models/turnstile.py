"""
Modèles Pydantic pour Turnstile.

Définit les schémas pour:
- Configuration du widget (props passées telles quelles au rendu)
- Callbacks du cycle de vie du widget
- Options de validation côté serveur
- Réponse de l'endpoint siteverify
"""

from __future__ import annotations

from typing import Any, Callable, Literal, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    field_validator,
)
from pydantic.alias_generators import to_camel


# === Types ===
Theme = Literal["light", "dark", "auto"]

WidgetSize = Literal["normal", "compact", "flexible"]

Retry = Literal["auto", "never"]

RefreshExpired = Literal["auto", "manual", "never"]

Appearance = Literal["always", "execute", "interaction-only"]

Execution = Literal["render", "execute"]

WidgetSandbox = Union[Literal["pass", "block", "pass-invisible", "block-invisible"], bool]

ValidateSandbox = Union[Literal["pass", "fail", "error"], bool]


# === Clés de test publiées par Cloudflare ===
# https://developers.cloudflare.com/turnstile/troubleshooting/testing/
SANDBOX_SITE_KEYS: dict[str, str] = {
    "pass": "1x00000000000000000000AA",
    "block": "2x00000000000000000000AB",
    "pass-invisible": "1x00000000000000000000BB",
    "block-invisible": "2x00000000000000000000BB",
}

SANDBOX_SECRET_KEYS: dict[str, str] = {
    "pass": "1x0000000000000000000000000000000AA",
    "fail": "2x0000000000000000000000000000000AA",
    "error": "3x0000000000000000000000000000000AA",
}


def _sandbox_key(sandbox: Any, keys: dict[str, str]) -> Optional[str]:
    """Résout une option sandbox (bool ou mode) en clé de test, None si désactivée."""
    if sandbox is None or sandbox is False:
        return None
    if sandbox is True:
        return keys["pass"]
    return keys[sandbox]


# === Widget ===
class TurnstileProps(BaseModel):
    """
    Configuration du widget Turnstile.

    Les valeurs par défaut sont celles du service Cloudflare, qui reste
    l'autorité sur les valeurs acceptées. Les noms camelCase (siteKey,
    retryInterval, cData...) sont acceptés en entrée.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )

    site_key: str = Field(..., description="Clé site Turnstile")
    id: Optional[str] = Field(default=None, description="Attribut id du conteneur")
    class_name: Optional[str] = Field(default=None, description="Classe CSS du conteneur")
    theme: Theme = "auto"
    tab_index: int = 0
    response_field: bool = True
    response_field_name: str = "cf-turnstile-response"
    size: WidgetSize = "normal"
    retry: Retry = "auto"
    retry_interval: int = Field(default=8000, description="Délai entre deux essais (ms)")
    refresh_expired: RefreshExpired = "auto"
    appearance: Appearance = "always"
    execution: Execution = "render"
    c_data: Optional[str] = Field(default=None, description="Données client renvoyées dans cdata")
    language: str = "auto"
    sandbox: Optional[WidgetSandbox] = None

    @property
    def effective_site_key(self) -> str:
        """Clé site utilisée au rendu: clé de test si sandbox actif."""
        return _sandbox_key(self.sandbox, SANDBOX_SITE_KEYS) or self.site_key

    def to_render_options(self) -> dict[str, Any]:
        """
        Convertit la configuration en options pour turnstile.render().

        Returns:
            Dictionnaire avec les noms de paramètres attendus par le script.
        """
        options: dict[str, Any] = {
            "sitekey": self.effective_site_key,
            "theme": self.theme,
            "size": self.size,
            "tabindex": self.tab_index,
            "response-field": self.response_field,
            "response-field-name": self.response_field_name,
            "retry": self.retry,
            "retry-interval": self.retry_interval,
            "refresh-expired": self.refresh_expired,
            "appearance": self.appearance,
            "execution": self.execution,
            "language": self.language,
        }
        if self.c_data is not None:
            options["cData"] = self.c_data
        return options


# Champs qui n'influencent pas l'instance rendue (attributs du conteneur)
CONTAINER_FIELDS = frozenset({"id", "class_name"})


class TurnstileCallbacks(BaseModel):
    """Callbacks du cycle de vie, synchrones ou coroutines."""

    model_config = ConfigDict(frozen=True)

    on_verify: Optional[Callable[[str], Any]] = None
    on_error: Optional[Callable[[Any], Any]] = None
    on_expire: Optional[Callable[[], Any]] = None
    on_load: Optional[Callable[[], Any]] = None


# === Validation serveur ===
class TurnstileValidateOptions(BaseModel):
    """
    Options d'une validation de token.

    La clé secrète est un SecretStr: elle n'apparaît ni dans repr() ni
    dans les logs.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    token: str = Field(..., description="Token produit par le widget")
    secret_key: SecretStr = Field(..., description="Clé secrète Turnstile")
    remoteip: Optional[str] = Field(default=None, description="IP du visiteur")
    idempotency_key: Optional[str] = Field(
        default=None,
        description="Clé de déduplication des soumissions répétées"
    )
    sandbox: Optional[ValidateSandbox] = None

    @field_validator("token")
    @classmethod
    def validate_token(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Le token Turnstile est vide")
        return v

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value().strip():
            raise ValueError("La clé secrète Turnstile est vide")
        return v

    def to_form_data(self) -> dict[str, str]:
        """
        Construit le corps form-encoded de la requête siteverify.

        Le sandbox remplace la clé secrète par la clé de test Cloudflare
        correspondante.
        """
        secret = _sandbox_key(self.sandbox, SANDBOX_SECRET_KEYS)
        data = {
            "secret": secret or self.secret_key.get_secret_value(),
            "response": self.token,
        }
        if self.remoteip:
            data["remoteip"] = self.remoteip
        if self.idempotency_key:
            data["idempotency_key"] = self.idempotency_key
        return data


class TurnstileValidateResponse(BaseModel):
    """
    Réponse de l'endpoint siteverify.

    success=False est un résultat normal (token refusé). Cloudflare envoie
    les codes sous "error-codes", "error_codes" est aussi accepté. Les champs
    supplémentaires (metadata...) sont conservés.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    success: bool = Field(strict=True)
    challenge_ts: Optional[str] = None
    hostname: Optional[str] = None
    error_codes: Optional[list[str]] = Field(
        default=None,
        validation_alias=AliasChoices("error_codes", "error-codes"),
    )
    action: Optional[str] = None
    cdata: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Retourne uniquement les champs présents dans la réponse."""
        return self.model_dump(exclude_unset=True)

    def has_error(self, code: str) -> bool:
        """Vérifie si un code d'erreur est présent."""
        return code in (self.error_codes or [])
