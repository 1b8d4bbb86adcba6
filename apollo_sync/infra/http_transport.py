# ============================================================
# Module : apollo_sync/infra/http_transport.py
# Objet  : Exécution HTTP des requêtes notify/fetch.
# Invariants :
#  - Ne lève jamais pour une condition distante: tout finit en Outcome.
#  - Les 4xx ne sont jamais rejoués.
# ============================================================
"""Transport HTTP vers le serveur de configuration.

Traduit chaque requête en un résultat à trois variantes: `Changed(body)` pour un 200,
`Unchanged()` pour un 304, `Failed(error)` sinon. Le rejeu (backoff exponentiel + jitter) ne
s'applique qu'aux requêtes marquées `is_retry`.
"""

from __future__ import annotations

import random as _rand
import time as _t
from typing import Protocol

import httpx
import structlog

from apollo_sync.app.metrics import TRANSPORT_RETRIES
from apollo_sync.core.errors import RemoteHTTPError, RemoteNetworkError
from apollo_sync.core.http_constants import (
    HTTP_NOT_MODIFIED,
    HTTP_OK,
    HTTP_STATUS_SERVER_ERROR_MAX,
    HTTP_STATUS_SERVER_ERROR_MIN,
    MAX_RETRY_ATTEMPTS,
    RETRY_BASE_DELAY,
    RETRY_RANDOM_FACTOR,
)
from apollo_sync.domain.app_config import AppConfig
from apollo_sync.domain.models import ConnectConfig
from apollo_sync.domain.outcome import Changed, Failed, Outcome, Unchanged
from apollo_sync.infra.signature import auth_headers


class Transport(Protocol):
    """Interface minimale attendue par le moteur de synchronisation."""

    def execute(self, app_config: AppConfig, connect_config: ConnectConfig) -> Outcome:
        """Exécute la requête et retourne son résultat."""
        ...


class HttpTransport:
    """Transport httpx synchrone, client partagé (pool de connexions)."""

    def __init__(
        self,
        client: httpx.Client | None = None,
        max_attempts: int = MAX_RETRY_ATTEMPTS,
        sleep=_t.sleep,
    ) -> None:
        """Initialize the transport with an optional preconfigured client."""
        if client is None:
            limits = httpx.Limits(max_keepalive_connections=10, max_connections=20)
            client = httpx.Client(limits=limits)
        self._client = client
        self._max_attempts = max(1, max_attempts)
        self._sleep = sleep
        self._log = structlog.get_logger(__name__).bind(component="http_transport")

    def close(self) -> None:
        """Ferme le client HTTP sous-jacent."""
        self._client.close()

    @staticmethod
    def build_url(app_config: AppConfig, connect_config: ConnectConfig) -> str:
        """Concatène l'adresse du serveur et l'URI relative de la requête."""
        base = app_config.server_url.rstrip("/")
        return f"{base}/{connect_config.uri.lstrip('/')}"

    def _headers(self, url: str, connect_config: ConnectConfig) -> dict[str, str]:
        raw = httpx.URL(url).raw_path.decode("ascii")
        return auth_headers(connect_config.app_id, connect_config.secret, raw)

    def _backoff(self, attempt: int) -> None:
        delay = (2 ** (attempt - 1)) * RETRY_BASE_DELAY + _rand.random() * RETRY_RANDOM_FACTOR
        TRANSPORT_RETRIES.inc()
        self._sleep(delay)

    def execute(self, app_config: AppConfig, connect_config: ConnectConfig) -> Outcome:
        """Exécute un GET et classe la réponse.

        Args:
            app_config: Client courant (adresse du serveur).
            connect_config: URI relative, secret, timeout et politique de rejeu.

        Returns:
            Outcome: Changed, Unchanged ou Failed.
        """
        url = self.build_url(app_config, connect_config)
        attempts_allowed = self._max_attempts if connect_config.is_retry else 1
        attempt = 0
        while True:
            attempt += 1
            try:
                resp = self._client.get(
                    url,
                    headers=self._headers(url, connect_config),
                    timeout=connect_config.timeout,
                )
            except httpx.HTTPError as exc:
                if attempt < attempts_allowed:
                    self._backoff(attempt)
                    continue
                self._log.warning(
                    "transport_network_error",
                    uri=connect_config.uri,
                    attempts=attempt,
                    error=type(exc).__name__,
                )
                return Failed(RemoteNetworkError(str(exc) or type(exc).__name__))

            if resp.status_code == HTTP_OK:
                return Changed(resp.content)
            if resp.status_code == HTTP_NOT_MODIFIED:
                return Unchanged()
            if (
                HTTP_STATUS_SERVER_ERROR_MIN <= resp.status_code < HTTP_STATUS_SERVER_ERROR_MAX
                and attempt < attempts_allowed
            ):
                self._backoff(attempt)
                continue
            self._log.warning(
                "transport_http_error",
                uri=connect_config.uri,
                status=resp.status_code,
                attempts=attempt,
            )
            return Failed(RemoteHTTPError(resp.status_code))
