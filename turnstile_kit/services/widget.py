"""
Adaptateur du widget Turnstile.

Fait le lien entre la configuration (TurnstileProps), le renderer concret
(script navigateur, HTML serveur, faux renderer de test) et les callbacks
de l'appelant:
- Chargement unique du script via ScriptLoader
- Montage d'une instance dans un conteneur
- Re-rendu complet quand une prop de rendu change
- Libération de l'instance au démontage
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Callable, Mapping, Optional, Protocol, Union

from turnstile_kit.core.error_handler import WidgetError, error_handler
from turnstile_kit.models.turnstile import (
    CONTAINER_FIELDS,
    TurnstileCallbacks,
    TurnstileProps,
)
from turnstile_kit.services.script_loader import ScriptLoader, script_loader

logger = logging.getLogger(__name__)


class WidgetRenderer(Protocol):
    """
    Capacité de rendu du widget.

    Les handles retournés par mount() sont opaques pour l'adaptateur.
    Les événements de l'instance sont transmis via les callbacks reçus
    au montage (on_verify, on_error, on_expire).
    """

    async def load_script(self) -> None:
        """Charge le script Turnstile dans la page."""
        ...

    def mount(
        self,
        container: Any,
        options: dict[str, Any],
        callbacks: TurnstileCallbacks
    ) -> Any:
        """Crée une instance dans le conteneur, retourne son handle (ou un awaitable)."""
        ...

    def remove(self, handle: Any) -> None:
        """Libère l'instance."""
        ...

    def reset(self, handle: Any) -> None:
        """Réinitialise l'instance (nouveau challenge)."""
        ...


class Turnstile:
    """
    Widget Turnstile monté via un WidgetRenderer.

    Aucune erreur de chargement ou de création ne traverse l'adaptateur:
    elles sont transmises à on_error sous forme de WidgetError.
    """

    def __init__(
        self,
        props: Union[TurnstileProps, Mapping[str, Any]],
        renderer: WidgetRenderer,
        *,
        on_verify: Optional[Callable[[str], Any]] = None,
        on_error: Optional[Callable[[Any], Any]] = None,
        on_expire: Optional[Callable[[], Any]] = None,
        on_load: Optional[Callable[[], Any]] = None,
        loader: Optional[ScriptLoader] = None
    ):
        """
        Initialise le widget sans le monter.

        Args:
            props: Configuration du widget (snake_case ou camelCase).
            renderer: Implémentation du rendu.
            on_verify: Appelé avec le token quand le challenge est réussi.
            on_error: Appelé avec l'erreur (WidgetError ou code du script).
            on_expire: Appelé quand le token expire.
            on_load: Appelé quand l'instance est rendue.
            loader: Porte de chargement du script. Globale par défaut.
        """
        self.props = (
            props if isinstance(props, TurnstileProps)
            else TurnstileProps.model_validate(dict(props))
        )
        self.renderer = renderer
        self.callbacks = TurnstileCallbacks(
            on_verify=on_verify,
            on_error=on_error,
            on_expire=on_expire,
            on_load=on_load,
        )
        self.loader = loader or script_loader

        self._container: Any = None
        self._handle: Any = None
        self._mounted = False
        self._failed = False
        self._generation = 0
        self._pending: set[asyncio.Task] = set()

    @property
    def mounted(self) -> bool:
        return self._mounted

    @property
    def handle(self) -> Any:
        """Handle de l'instance courante, None si rien n'est rendu."""
        return self._handle

    async def mount(self, container: Any) -> bool:
        """
        Monte le widget dans un conteneur.

        Args:
            container: Cible du rendu (sélecteur, élément, id...).

        Un widget dont le rendu a échoué peut être remonté directement.

        Returns:
            True si une instance a été rendue.
        """
        if self._mounted and self._failed:
            logger.debug("Nouvelle tentative de rendu du widget Turnstile")
            self._container = container
            return await self._render()

        if self._mounted:
            logger.warning("Widget Turnstile déjà monté, montage ignoré")
            return self._handle is not None

        self._container = container
        self._mounted = True
        return await self._render()

    async def update(self, **changes: Any) -> bool:
        """
        Met à jour la configuration.

        Si un champ de rendu change, l'instance est supprimée puis recréée
        avec la nouvelle configuration. Les champs du conteneur (id,
        class_name) ne déclenchent pas de re-rendu.

        Returns:
            True si une nouvelle instance a été rendue.
        """
        aliases = {
            field.alias: name
            for name, field in TurnstileProps.model_fields.items()
            if field.alias
        }
        normalized = {aliases.get(key, key): value for key, value in changes.items()}
        new_props = TurnstileProps.model_validate({**self.props.model_dump(), **normalized})

        changed = {
            name for name in TurnstileProps.model_fields
            if getattr(new_props, name) != getattr(self.props, name)
        }
        self.props = new_props

        if not self._mounted or not (changed - CONTAINER_FIELDS):
            return False

        logger.debug(f"Re-rendu du widget Turnstile: {sorted(changed)}")
        self._release()
        return await self._render()

    def reset(self) -> None:
        """Demande un nouveau challenge sur l'instance courante."""
        if not self._mounted or self._handle is None:
            return
        try:
            self.renderer.reset(self._handle)
        except Exception as e:
            self._dispatch(
                self.callbacks.on_error,
                self._widget_error("Échec de la réinitialisation du widget", "reset", e)
            )

    def unmount(self) -> None:
        """
        Démonte le widget.

        L'instance est supprimée une seule fois ; plus aucun callback
        n'est appelé ensuite.
        """
        if not self._mounted:
            return
        self._mounted = False
        self._release()
        self._container = None
        for task in list(self._pending):
            task.cancel()

    async def _render(self) -> bool:
        """Charge le script puis crée une instance pour la génération courante."""
        self._generation += 1
        generation = self._generation
        self._failed = False

        try:
            await self.loader.ensure_loaded(self.renderer)
        except Exception as e:
            await self._report(
                generation,
                self._widget_error("Échec du chargement du script Turnstile", "load_script", e)
            )
            return False

        if not self._is_current(generation):
            return False

        try:
            handle = self.renderer.mount(
                self._container,
                self.props.to_render_options(),
                self._forwarding_callbacks(generation),
            )
            if inspect.isawaitable(handle):
                handle = await handle
        except Exception as e:
            await self._report(
                generation,
                self._widget_error("Échec de la création du widget Turnstile", "mount", e)
            )
            return False

        if not self._is_current(generation):
            # Démonté ou re-rendu pendant un montage asynchrone
            self._remove_handle(handle)
            return False

        self._handle = handle
        logger.debug("Widget Turnstile rendu")
        await self._call(self.callbacks.on_load)
        return True

    def _release(self) -> None:
        """Invalide les callbacks en cours et supprime l'instance courante."""
        self._generation += 1
        handle, self._handle = self._handle, None
        if handle is not None:
            self._remove_handle(handle)

    def _remove_handle(self, handle: Any) -> None:
        try:
            self.renderer.remove(handle)
        except Exception as e:
            # Aucun callback après démontage: l'échec est seulement journalisé
            error_handler.handle_error(
                self._widget_error("Échec de la suppression du widget", "remove", e)
            )

    def _is_current(self, generation: int) -> bool:
        return self._mounted and generation == self._generation

    def _forwarding_callbacks(self, generation: int) -> TurnstileCallbacks:
        """Callbacks transmis au renderer, muets si l'instance n'est plus la courante."""

        def guard(callback: Optional[Callable[..., Any]]) -> Optional[Callable[..., Any]]:
            if callback is None:
                return None

            def forward(*args: Any) -> None:
                if not self._is_current(generation):
                    logger.debug("Événement Turnstile ignoré: instance périmée")
                    return
                self._dispatch(callback, *args)

            return forward

        return TurnstileCallbacks(
            on_verify=guard(self.callbacks.on_verify),
            on_error=guard(self.callbacks.on_error),
            on_expire=guard(self.callbacks.on_expire),
        )

    def _widget_error(self, message: str, operation: str, original: Exception) -> WidgetError:
        error = WidgetError(message, operation=operation, original=original)
        error_handler.handle_error(error)
        return error

    async def _report(self, generation: int, error: WidgetError) -> None:
        if self._is_current(generation):
            self._failed = True
            await self._call(self.callbacks.on_error, error)

    async def _call(self, callback: Optional[Callable[..., Any]], *args: Any) -> None:
        """Appelle un callback de l'appelant ; ses exceptions sont journalisées."""
        if callback is None:
            return
        try:
            result = callback(*args)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            self._widget_error("Callback Turnstile en erreur", "callback", e)

    def _dispatch(self, callback: Optional[Callable[..., Any]], *args: Any) -> None:
        """Appelle un callback depuis un contexte synchrone, planifie les coroutines."""
        if callback is None:
            return
        try:
            result = callback(*args)
        except Exception as e:
            self._widget_error("Callback Turnstile en erreur", "callback", e)
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._pending.add(task)
            task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Future) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            self._widget_error("Callback Turnstile en erreur", "callback", task.exception())
