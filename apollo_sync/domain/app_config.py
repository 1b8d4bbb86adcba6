"""
Identité et réglages du client de configuration.

`AppConfig` est détenue par l'appelant et passée par référence à chaque passe de synchronisation.
Elle n'est modifiée qu'à travers ses sous-objets: la carte des notifications et le cache des
release keys installées.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from apollo_sync.core.http_constants import DEFAULT_SYNC_TIMEOUT
from apollo_sync.domain.models import ApolloConfig
from apollo_sync.domain.namespaces import split_namespaces
from apollo_sync.domain.notifications import NotificationsMap

if TYPE_CHECKING:
    from apollo_sync.core.settings import Settings


class CurrentApolloConfig:
    """Release key de la dernière configuration installée, par namespace."""

    def __init__(self) -> None:
        """Initialise un cache vide."""
        self._lock = threading.Lock()
        self._release_keys: dict[str, str] = {}

    def set(self, config: ApolloConfig) -> None:
        """Enregistre la release key d'une configuration installée."""
        with self._lock:
            self._release_keys[config.namespace_name] = config.release_key

    def get_release_key(self, namespace: str) -> str:
        """Retourne la release key connue, ou "" si le namespace n'est pas en cache."""
        with self._lock:
            return self._release_keys.get(namespace, "")


@dataclass
class AppConfig:
    """Paramètres d'un client (application, cluster, namespaces, sauvegarde)."""

    app_id: str
    cluster: str = "default"
    namespace_name: str = "application"
    server_url: str = "http://localhost:8080"
    secret: str = ""
    backup_config_path: str = ""
    is_backup_config: bool = True
    sync_timeout: float = DEFAULT_SYNC_TIMEOUT
    notifications: NotificationsMap = field(default_factory=NotificationsMap, repr=False)
    current: CurrentApolloConfig = field(default_factory=CurrentApolloConfig, repr=False)

    @classmethod
    def from_settings(cls, settings: Settings) -> AppConfig:
        """Construit une AppConfig depuis les paramètres applicatifs."""
        return cls(
            app_id=settings.APOLLO_APP_ID,
            cluster=settings.APOLLO_CLUSTER,
            namespace_name=settings.APOLLO_NAMESPACE_NAME,
            server_url=settings.APOLLO_SERVER_URL,
            secret=settings.APOLLO_SECRET,
            backup_config_path=settings.APOLLO_BACKUP_CONFIG_PATH,
            is_backup_config=settings.APOLLO_IS_BACKUP_CONFIG,
            sync_timeout=settings.APOLLO_SYNC_TIMEOUT_S,
        )

    def namespaces(self) -> list[str]:
        """Namespaces configurés, dans l'ordre de déclaration."""
        return split_namespaces(self.namespace_name)

    def get_notifications_map(self) -> NotificationsMap:
        """Carte des versions de changement propre à ce client."""
        return self.notifications

    def get_current_apollo_config(self) -> CurrentApolloConfig:
        """Cache des release keys installées."""
        return self.current
