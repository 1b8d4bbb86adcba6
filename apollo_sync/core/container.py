"""
Conteneur d'injection de dépendances du client de configuration.

Instancie les composants (settings, AppConfig, transport, sauvegarde, dispatcher, moteur) à partir
des paramètres. Une instance par défaut paresseuse est proposée par `get_container`, mais rien dans
le moteur n'en dépend.
"""

import functools

import structlog

from apollo_sync.core.settings import Settings, get_settings
from apollo_sync.domain.app_config import AppConfig
from apollo_sync.domain.models import ApolloConfig
from apollo_sync.infra.backup_store import FileBackupStore
from apollo_sync.infra.http_transport import HttpTransport
from apollo_sync.infra.netutil import get_internal_ip
from apollo_sync.services.format_dispatcher import FormatDispatcher
from apollo_sync.services.sync_engine import SyncEngine


class Container:
    def __init__(
        self,
        settings: Settings | None = None,
        transport=None,
        backup_store: FileBackupStore | None = None,
    ):
        self.settings = settings if settings is not None else get_settings()
        self.app_config = AppConfig.from_settings(self.settings)
        self.transport = transport if transport is not None else HttpTransport()
        self.backup_store = backup_store if backup_store is not None else FileBackupStore()
        self.dispatcher = FormatDispatcher()
        client_ip = self.settings.APOLLO_CLIENT_IP
        self.engine = SyncEngine(
            transport=self.transport,
            backup_store=self.backup_store,
            dispatcher=self.dispatcher,
            ip_resolver=(lambda: client_ip) if client_ip else get_internal_ip,
            max_workers=self.settings.APOLLO_FETCH_WORKERS,
        )
        self._log = structlog.get_logger(__name__).bind(component="container")

    def sync(self) -> list[ApolloConfig]:
        """Exécute une passe de synchronisation pour l'AppConfig du conteneur."""
        return self.engine.sync(self.app_config)

    def apply(self, configs: list[ApolloConfig]) -> None:
        """Installe les configurations reçues.

        Enregistre les release keys (utilisées par les fetchs suivants) et écrit la sauvegarde
        locale si elle est activée. Un échec d'écriture n'empêche pas l'installation.
        """
        current = self.app_config.get_current_apollo_config()
        for config in configs:
            current.set(config)
            if not self.app_config.is_backup_config:
                continue
            try:
                self.backup_store.write_config_file(config, self.app_config.backup_config_path)
            except (OSError, TypeError, ValueError) as exc:
                self._log.error(
                    "backup_write_failed",
                    phase="backup",
                    namespace=config.namespace_name,
                    error=str(exc),
                )


@functools.lru_cache(maxsize=1)
def get_container() -> Container:
    """Retourne l'instance par défaut du processus (construite au premier appel)."""
    return Container()
