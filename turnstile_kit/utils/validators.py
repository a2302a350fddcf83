"""
Utilitaires de validation et normalisation pour turnstile-kit.

Fonctions réutilisables pour les données entrantes des routes HTTP.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional


def get_client_ip(headers: Mapping[str, str], fallback: Optional[str] = None) -> Optional[str]:
    """
    Détermine l'IP du visiteur à transmettre comme remoteip.

    Ordre: CF-Connecting-IP (derrière Cloudflare), X-Real-IP, premier
    élément de X-Forwarded-For, puis l'adresse de la socket.

    Args:
        headers: En-têtes de la requête (insensibles à la casse).
        fallback: Adresse de la socket.

    Returns:
        L'IP ou None si aucune n'est connue.

    Examples:
        >>> get_client_ip({"x-forwarded-for": "203.0.113.7, 10.0.0.1"})
        '203.0.113.7'
        >>> get_client_ip({}, "127.0.0.1")
        '127.0.0.1'
    """
    for header in ("cf-connecting-ip", "x-real-ip"):
        value = clean_optional_string(headers.get(header))
        if value:
            return value

    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = clean_optional_string(forwarded.split(",")[0])
        if first:
            return first

    return fallback


def clean_optional_string(value: Any) -> Optional[str]:
    """
    Nettoie une chaîne optionnelle.

    Args:
        value: Valeur brute (str, None, autre).

    Returns:
        La chaîne sans espaces superflus, None si vide.

    Examples:
        >>> clean_optional_string("  abc ")
        'abc'
        >>> clean_optional_string("   ") is None
        True
    """
    if value is None:
        return None
    cleaned = str(value).strip()
    return cleaned or None
