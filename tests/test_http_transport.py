# ============================================================
# Tests : tests/test_http_transport.py
# Objet  : Classement des réponses HTTP, rejeu et signature.
# ============================================================
"""
Tests pour le transport HTTP.

Ce module teste la traduction des réponses (200/304/autres) en Outcome, la politique de rejeu et
les en-têtes de signature, via `httpx.MockTransport` (aucun réseau).
"""

from __future__ import annotations

import base64
import hashlib
import hmac

import httpx

from apollo_sync.core.errors import RemoteHTTPError, RemoteNetworkError
from apollo_sync.core.http_constants import (
    MAX_RETRY_ATTEMPTS,
    NOTIFY_CONNECT_TIMEOUT,
    RETRY_BASE_DELAY,
)
from apollo_sync.domain.app_config import AppConfig
from apollo_sync.domain.models import ConnectConfig
from apollo_sync.domain.outcome import Changed, Failed, Unchanged
from apollo_sync.infra.http_transport import HttpTransport
from apollo_sync.infra.signature import auth_headers

HTTP_SERVICE_UNAVAILABLE = 503
HTTP_NOT_FOUND = 404


def _transport(handler, seen: list[httpx.Request], sleeps: list[float] | None = None):
    def recording(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    client = httpx.Client(transport=httpx.MockTransport(recording))
    sleep_calls = sleeps if sleeps is not None else []
    return HttpTransport(client=client, sleep=sleep_calls.append)


def _app() -> AppConfig:
    return AppConfig(app_id="demo", server_url="http://config.test/")


def test_ok_returns_changed_body() -> None:
    """Teste qu'un 200 produit Changed avec le corps brut."""
    seen: list[httpx.Request] = []
    t = _transport(lambda r: httpx.Response(200, content=b"[]"), seen)
    out = t.execute(_app(), ConnectConfig(uri="notifications/v2?appId=demo", app_id="demo"))
    assert out == Changed(b"[]")
    assert str(seen[0].url) == "http://config.test/notifications/v2?appId=demo"


def test_not_modified_returns_unchanged() -> None:
    """Teste qu'un 304 produit Unchanged."""
    seen: list[httpx.Request] = []
    t = _transport(lambda r: httpx.Response(304), seen)
    assert t.execute(_app(), ConnectConfig(uri="configs/demo/default/app", app_id="demo")) == (
        Unchanged()
    )


def test_client_error_is_not_retried() -> None:
    """Teste qu'un 4xx échoue immédiatement, même avec rejeu activé."""
    seen: list[httpx.Request] = []
    t = _transport(lambda r: httpx.Response(HTTP_NOT_FOUND), seen)
    out = t.execute(_app(), ConnectConfig(uri="configs/x", app_id="demo", is_retry=True))
    assert isinstance(out, Failed)
    assert isinstance(out.error, RemoteHTTPError)
    assert out.error.status_code == HTTP_NOT_FOUND
    assert len(seen) == 1


def test_server_error_retried_then_success() -> None:
    """Teste le rejeu des 5xx avec backoff puis succès."""
    seen: list[httpx.Request] = []
    sleeps: list[float] = []

    def flaky(request: httpx.Request) -> httpx.Response:
        if len(seen) < MAX_RETRY_ATTEMPTS:
            return httpx.Response(HTTP_SERVICE_UNAVAILABLE)
        return httpx.Response(200, content=b"{}")

    t = _transport(flaky, seen, sleeps)
    out = t.execute(_app(), ConnectConfig(uri="configs/x", app_id="demo", is_retry=True))
    assert out == Changed(b"{}")
    assert len(seen) == MAX_RETRY_ATTEMPTS
    assert len(sleeps) == MAX_RETRY_ATTEMPTS - 1
    assert sleeps[0] >= RETRY_BASE_DELAY
    assert sleeps[1] >= 2 * RETRY_BASE_DELAY


def test_server_error_without_retry_fails_once() -> None:
    """Teste qu'un 5xx sans rejeu échoue après une seule tentative."""
    seen: list[httpx.Request] = []
    t = _transport(lambda r: httpx.Response(HTTP_SERVICE_UNAVAILABLE), seen)
    out = t.execute(_app(), ConnectConfig(uri="notifications/v2", app_id="demo"))
    assert isinstance(out, Failed)
    assert out.error.status_code == HTTP_SERVICE_UNAVAILABLE
    assert len(seen) == 1


def test_network_error_becomes_failed() -> None:
    """Teste qu'une erreur réseau est convertie en Failed(RemoteNetworkError)."""
    seen: list[httpx.Request] = []

    def boom(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    sleeps: list[float] = []
    t = _transport(boom, seen, sleeps)
    out = t.execute(_app(), ConnectConfig(uri="configs/x", app_id="demo", is_retry=True))
    assert isinstance(out, Failed)
    assert isinstance(out.error, RemoteNetworkError)
    assert len(seen) == MAX_RETRY_ATTEMPTS


def test_timeout_is_forwarded() -> None:
    """Teste que le délai de la requête est transmis au client HTTP."""
    seen: list[httpx.Request] = []
    t = _transport(lambda r: httpx.Response(304), seen)
    t.execute(
        _app(),
        ConnectConfig(uri="notifications/v2", app_id="demo", timeout=NOTIFY_CONNECT_TIMEOUT),
    )
    assert seen[0].extensions["timeout"]["read"] == NOTIFY_CONNECT_TIMEOUT


def test_signature_headers_when_secret() -> None:
    """Teste la présence et la forme des en-têtes de signature."""
    seen: list[httpx.Request] = []
    t = _transport(lambda r: httpx.Response(304), seen)
    t.execute(
        _app(), ConnectConfig(uri="configs/demo/default/app?ip=1", app_id="demo", secret="s3")
    )
    headers = seen[0].headers
    ts = headers["Timestamp"]
    expected = base64.b64encode(
        hmac.new(b"s3", f"{ts}\n/configs/demo/default/app?ip=1".encode(), hashlib.sha1).digest()
    ).decode()
    assert headers["Authorization"] == f"Apollo demo:{expected}"


def test_no_signature_without_secret() -> None:
    """Teste l'absence d'en-têtes de signature sans secret."""
    seen: list[httpx.Request] = []
    t = _transport(lambda r: httpx.Response(304), seen)
    t.execute(_app(), ConnectConfig(uri="configs/x", app_id="demo"))
    assert "Authorization" not in seen[0].headers
    assert auth_headers("demo", "", "/x") == {}


def test_auth_headers_deterministic_for_fixed_timestamp() -> None:
    """Teste que la signature est stable pour un horodatage donné."""
    a = auth_headers("demo", "secret", "/configs/a", timestamp_ms=1700000000000)
    b = auth_headers("demo", "secret", "/configs/a", timestamp_ms=1700000000000)
    assert a == b
    assert a["Timestamp"] == "1700000000000"
