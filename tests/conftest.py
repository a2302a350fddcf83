"""
Configuration et fixtures pytest pour turnstile-kit.

Fournit des fixtures réutilisables pour tous les tests.
"""

import asyncio
import os
import pytest
from typing import Any, Callable, Dict, Generator, List
from urllib.parse import parse_qs

import httpx
from fastapi.testclient import TestClient


# Configuration des variables d'environnement pour les tests
os.environ.setdefault("TURNSTILE_SECRET_KEY", "testsecret")
os.environ.setdefault("TURNSTILE_SITE_KEY", "0x4AAAAAAAtestsitekey")
os.environ.setdefault("APP_ENV", "development")
os.environ.setdefault("DEBUG", "true")


DUMMY_TOKEN = "XXXX.DUMMY.TOKEN.XXXX"


class FakeRenderer:
    """
    Renderer de test.

    Compte les chargements de script, garde les instances montées et
    permet de simuler les événements du script (emit).
    """

    def __init__(
        self,
        load_error: Exception | None = None,
        mount_error: Exception | None = None,
        load_delay: float = 0
    ):
        self.load_error = load_error
        self.mount_error = mount_error
        self.load_delay = load_delay
        self.load_calls = 0
        self.instances: Dict[str, Dict[str, Any]] = {}
        self.callbacks: Dict[str, Any] = {}
        self.removed: List[str] = []
        self.resets: List[str] = []
        self._counter = 0

    async def load_script(self) -> None:
        self.load_calls += 1
        if self.load_delay:
            await asyncio.sleep(self.load_delay)
        if self.load_error is not None:
            raise self.load_error

    def mount(self, container, options, callbacks):
        if self.mount_error is not None:
            raise self.mount_error
        self._counter += 1
        handle = f"widget-{self._counter}"
        self.instances[handle] = {"container": container, "options": options}
        self.callbacks[handle] = callbacks
        return handle

    def remove(self, handle) -> None:
        self.removed.append(handle)
        self.instances.pop(handle)

    def reset(self, handle) -> None:
        self.resets.append(handle)

    def emit(self, handle: str, event: str, *args: Any) -> None:
        """Simule un événement du script (on_verify, on_error, on_expire)."""
        callback = getattr(self.callbacks[handle], event)
        if callback is not None:
            callback(*args)


@pytest.fixture
def fake_renderer() -> FakeRenderer:
    """Renderer sans erreur."""
    return FakeRenderer()


@pytest.fixture
def script_loader():
    """Porte de chargement isolée (une page par test)."""
    from turnstile_kit.services.script_loader import ScriptLoader
    return ScriptLoader()


@pytest.fixture
def sample_props() -> Dict[str, Any]:
    """Props minimales du widget."""
    return {"siteKey": "0x4AAAAAAAtestsitekey"}


@pytest.fixture
def siteverify_requests() -> List[httpx.Request]:
    """Requêtes reçues par le faux endpoint siteverify."""
    return []


@pytest.fixture
def mock_siteverify(siteverify_requests) -> Callable[..., httpx.AsyncClient]:
    """
    Fabrique de clients httpx branchés sur un faux siteverify.

    Usage: client = mock_siteverify(json={...}) ou
    mock_siteverify(status_code=500) ou mock_siteverify(raises=...).
    """

    def factory(
        json: Any = None,
        status_code: int = 200,
        content: bytes | None = None,
        raises: Exception | None = None
    ) -> httpx.AsyncClient:
        def handler(request: httpx.Request) -> httpx.Response:
            siteverify_requests.append(request)
            if raises is not None:
                raise raises
            if content is not None:
                return httpx.Response(status_code, content=content)
            return httpx.Response(status_code, json=json)

        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return factory


def form_fields(request: httpx.Request) -> Dict[str, str]:
    """Décode le corps form-encoded d'une requête."""
    return {
        key: values[0]
        for key, values in parse_qs(request.content.decode("utf-8")).items()
    }


@pytest.fixture
def test_client() -> Generator[TestClient, None, None]:
    """
    Fixture pour le client de test FastAPI.

    Crée un client HTTP pour tester les endpoints.
    """
    from turnstile_kit.main import app
    with TestClient(app) as client:
        yield client


# === Markers personnalisés ===

def pytest_configure(config):
    """Configuration des markers pytest."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "security: marks tests as security-related"
    )
