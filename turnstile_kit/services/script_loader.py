"""
Chargement unique du script Turnstile.

Le script n'est chargé qu'une fois par page, quel que soit le nombre
de widgets. Les montages concurrents attendent la même tâche de
chargement au lieu d'en lancer une nouvelle.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from turnstile_kit.services.widget import WidgetRenderer

logger = logging.getLogger(__name__)


class ScriptLoader:
    """
    Porte de chargement partagée du script Turnstile.

    Une seule tâche asyncio par page, créée paresseusement au premier
    montage. Un échec est transmis à tous les montages en attente puis
    la porte est rouverte pour qu'un montage ultérieur réessaie.
    """

    def __init__(self):
        """Initialise le loader sans chargement en cours."""
        self._task: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self.load_count = 0

    @property
    def loaded(self) -> bool:
        """Vérifie si le script a été chargé avec succès."""
        task = self._task
        return (
            task is not None
            and task.done()
            and not task.cancelled()
            and task.exception() is None
        )

    async def ensure_loaded(self, renderer: WidgetRenderer) -> None:
        """
        Attend que le script soit chargé, en le chargeant si nécessaire.

        Args:
            renderer: Renderer qui sait charger le script dans la page.

        Raises:
            Exception: L'erreur du chargement, pour chaque appelant en attente.
        """
        loop = asyncio.get_running_loop()
        if self._loop is not loop and not self.loaded:
            # Nouvelle boucle: une tâche en cours sur l'ancienne ne terminera jamais
            self._task = None

        # Pas d'await entre le test et l'affectation: un seul chargement
        if self._task is None:
            self._loop = loop
            self._task = loop.create_task(self._load(renderer))

        # shield: l'annulation d'un appelant n'annule pas le chargement partagé
        await asyncio.shield(self._task)

    async def _load(self, renderer: WidgetRenderer) -> None:
        """Charge le script via le renderer."""
        self.load_count += 1
        logger.info("Chargement du script Turnstile")
        try:
            await renderer.load_script()
        except Exception as e:
            logger.error(f"Échec du chargement du script Turnstile: {e}")
            if self._task is asyncio.current_task():
                self._task = None
            raise
        logger.info("Script Turnstile chargé")

    def reset(self) -> None:
        """Oublie le chargement (nouvelle page)."""
        self._task = None
        self._loop = None
        self.load_count = 0


# Instance globale pour la page courante
script_loader = ScriptLoader()
