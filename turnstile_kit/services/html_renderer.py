"""
Rendu HTML côté serveur du widget Turnstile.

Implémente WidgetRenderer pour produire une page HTML:
- Balise <script> api.js émise une seule fois par page
- Un conteneur <div> et un appel turnstile.render() par instance
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from turnstile_kit.core.config import settings
from turnstile_kit.models.turnstile import TurnstileCallbacks, TurnstileProps
from turnstile_kit.services.script_loader import ScriptLoader

logger = logging.getLogger(__name__)

# Configuration Jinja2 pour les templates
TEMPLATES_DIR = Path(__file__).parent.parent / "templates"
jinja_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html", "xml"]),
    trim_blocks=True,
    lstrip_blocks=True,
)

ONLOAD_CALLBACK = "onloadTurnstileKit"


class HtmlPage:
    """
    Page HTML contenant un ou plusieurs widgets.

    Chaque page a sa propre porte de chargement: le script n'y est
    inclus qu'une fois.
    """

    def __init__(self, title: str = "Turnstile", script_url: str | None = None):
        self.title = title
        self.script_url = script_url or settings.turnstile_script_url
        self.loader = ScriptLoader()
        self.scripts: list[str] = []
        self.widgets: dict[str, dict[str, Any]] = {}
        self._classes: dict[str, str] = {}

    def container_for(self, props: TurnstileProps, default_id: str = "turnstile-widget") -> str:
        """
        Réserve un conteneur pour un widget.

        Args:
            props: Configuration du widget (id, class_name).
            default_id: Id utilisé si props.id est vide.

        Returns:
            L'id du conteneur à passer à Turnstile.mount().
        """
        base_id = props.id or default_id
        container_id = base_id
        suffix = 1
        while container_id in self.widgets or container_id in self._classes:
            suffix += 1
            container_id = f"{base_id}-{suffix}"
        self._classes[container_id] = props.class_name or ""
        return container_id

    def release(self, container_id: str) -> None:
        """Libère un conteneur et le fragment de son widget."""
        self.widgets.pop(container_id, None)
        self._classes.pop(container_id, None)

    def render(self, **context: Any) -> str:
        """
        Produit le HTML de la page.

        Args:
            **context: Variables supplémentaires pour le template.

        Returns:
            Le document HTML.
        """
        template = jinja_env.get_template("turnstile_page.html")
        return template.render(
            title=self.title,
            scripts=self.scripts,
            onload_callback=ONLOAD_CALLBACK,
            widgets=[
                {
                    "container": container_id,
                    "class_name": self._classes.get(container_id, ""),
                    "options": widget["options"],
                }
                for container_id, widget in self.widgets.items()
            ],
            **context,
        )


class HtmlWidgetRenderer:
    """
    Renderer produisant le balisage d'un widget dans une HtmlPage.

    Le navigateur exécute les callbacks JavaScript: côté serveur, seuls
    les champs de formulaire (response-field) transportent le token.
    """

    def __init__(self, page: HtmlPage):
        self.page = page

    async def load_script(self) -> None:
        src = f"{self.page.script_url}?render=explicit&onload={ONLOAD_CALLBACK}"
        self.page.scripts.append(src)
        logger.debug(f"Script Turnstile ajouté à la page: {src}")

    def mount(
        self,
        container: str,
        options: dict[str, Any],
        callbacks: Optional[TurnstileCallbacks] = None
    ) -> str:
        if container in self.page.widgets:
            raise ValueError(f"Conteneur déjà utilisé: {container}")
        self.page.widgets[container] = {"options": options}
        return container

    def remove(self, handle: str) -> None:
        self.page.release(handle)

    def reset(self, handle: str) -> None:
        # Rien à réinitialiser avant que la page ne soit servie
        logger.debug(f"reset ignoré pour le rendu HTML ({handle})")
