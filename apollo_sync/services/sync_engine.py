# ============================================================
# Module : apollo_sync/services/sync_engine.py
# Objet  : Une passe de synchronisation (notify long poll → fetch par namespace).
# Contexte : Réconcilie version distante, succès du fetch et sauvegarde locale.
# Invariants :
#  - Notify en échec ou vide → la passe entière se limite à la sauvegarde.
#  - L'échec d'un namespace n'empêche jamais les autres d'aboutir.
#  - Aucune erreur récupérable ne sort de `sync`.
# ============================================================
"""Moteur de synchronisation du client de configuration.

Le moteur est un objet construit explicitement (transport, stockage de sauvegarde, dispatcher de
formats) et détenu par le code qui câble le client; il ne dépend d'aucune instance globale.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from urllib.parse import quote_plus

import structlog
from pydantic import TypeAdapter, ValidationError

from apollo_sync.app.metrics import (
    BACKUP_FALLBACK_TOTAL,
    FETCH_TOTAL,
    NOTIFY_LATENCY,
    NOTIFY_TOTAL,
    TRACKED_NAMESPACES,
)
from apollo_sync.core.errors import (
    ApolloSyncError,
    DecodeError,
    MissingAppConfigError,
    TransportError,
)
from apollo_sync.core.http_constants import NOTIFY_CONNECT_TIMEOUT
from apollo_sync.domain.app_config import AppConfig
from apollo_sync.domain.models import ApolloConfig, ConnectConfig, Notification
from apollo_sync.domain.namespaces import split_namespaces
from apollo_sync.domain.outcome import Failed, Unchanged
from apollo_sync.infra.backup_store import BackupStore
from apollo_sync.infra.http_transport import Transport
from apollo_sync.infra.netutil import get_internal_ip
from apollo_sync.services.format_dispatcher import FormatDispatcher

_NOTIFICATIONS = TypeAdapter(list[Notification])


def _q(value: object) -> str:
    return quote_plus(str(value), safe="")


class SyncEngine:
    """Orchestration d'une passe de synchronisation.

    Paramètres:
    - transport: exécute les requêtes et renvoie un Outcome.
    - backup_store: charge les sauvegardes locales en cas d'indisponibilité.
    - dispatcher: convertit le contenu brut selon le format du namespace.
    - ip_resolver: IP du client transmise au fetch (résolue par l'environnement réseau).
    - max_workers: >1 pour exécuter les fetchs en parallèle.
    """

    def __init__(
        self,
        transport: Transport,
        backup_store: BackupStore,
        dispatcher: FormatDispatcher | None = None,
        ip_resolver: Callable[[], str] = get_internal_ip,
        max_workers: int = 1,
    ) -> None:
        """Initialize the engine with its collaborators."""
        self._transport = transport
        self._backup_store = backup_store
        self._dispatcher = dispatcher if dispatcher is not None else FormatDispatcher()
        self._ip_resolver = ip_resolver
        self._max_workers = max(1, int(max_workers))
        self._log = structlog.get_logger(__name__).bind(component="sync_engine")

    # -------------------- Construction des URI --------------------

    @staticmethod
    def get_notify_url_suffix(notifications: str, app_config: AppConfig) -> str:
        """URI relative du long poll; chaque champ est échappé séparément."""
        return "notifications/v2?appId={}&cluster={}&notifications={}".format(
            _q(app_config.app_id), _q(app_config.cluster), _q(notifications)
        )

    def get_sync_uri(self, app_config: AppConfig, namespace: str) -> str:
        """URI relative du fetch d'un namespace (release key du cache courant)."""
        release_key = app_config.get_current_apollo_config().get_release_key(namespace)
        return "configs/{}/{}/{}?releaseKey={}&ip={}".format(
            _q(app_config.app_id),
            _q(app_config.cluster),
            _q(namespace),
            _q(release_key),
            _q(self._ip_resolver()),
        )

    # -------------------- Passe complète --------------------

    def sync(self, app_config: AppConfig | None) -> list[ApolloConfig]:
        """
        Exécute une passe de synchronisation.

        1. Long poll sur tous les namespaces suivis/configurés.
        2. Échec ou réponse vide → configurations de sauvegarde uniquement.
        3. Sinon fusion des versions puis fetch de chaque namespace suivi.

        Args:
            app_config: Client à synchroniser (obligatoire).

        Returns:
            list[ApolloConfig]: Configurations obtenues (éventuellement vide).

        Raises:
            MissingAppConfigError: Si aucune AppConfig n'est fournie.
        """
        if app_config is None:
            raise MissingAppConfigError("can not find apollo config! please confirm!")

        try:
            notifications = self.notify_remote_config(app_config)
        except ApolloSyncError as exc:
            self._log.error(
                "notify_failed", phase="notify", app_id=app_config.app_id, error=str(exc)
            )
            return self.load_backup_config(app_config.namespace_name, app_config)

        if not notifications:
            return self.load_backup_config(app_config.namespace_name, app_config)

        notifications_map = app_config.get_notifications_map()
        notifications_map.update_all_notifications(notifications)
        namespaces = notifications_map.namespaces()
        TRACKED_NAMESPACES.set(len(namespaces))
        return self._fetch_all(namespaces, app_config)

    def _fetch_all(self, namespaces: list[str], app_config: AppConfig) -> list[ApolloConfig]:
        if self._max_workers > 1 and len(namespaces) > 1:
            with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
                results = list(
                    pool.map(lambda ns: self.sync_with_namespace(ns, app_config), namespaces)
                )
        else:
            results = [self.sync_with_namespace(ns, app_config) for ns in namespaces]
        return [c for c in results if c is not None]

    # -------------------- Notify --------------------

    def notify_remote_config(
        self, app_config: AppConfig | None, namespace: str = ""
    ) -> list[Notification]:
        """
        Long poll: attend un changement ou l'expiration du délai (10 min).

        Args:
            app_config: Client à synchroniser (obligatoire).
            namespace: Filtre optionnel; vide = tous les namespaces configurés et suivis.

        Returns:
            list[Notification]: Changements signalés; vide si « not modified ».

        Raises:
            MissingAppConfigError: Si aucune AppConfig n'est fournie.
            TransportError: Si la requête échoue.
            DecodeError: Si la réponse n'est pas un tableau JSON de notifications.
        """
        if app_config is None:
            raise MissingAppConfigError("can not find apollo config! please confirm!")

        notifications_map = app_config.get_notifications_map()
        if namespace:
            targets = [namespace]
        else:
            targets = app_config.namespaces()
            targets += [ns for ns in notifications_map.namespaces() if ns not in targets]
        connect_config = ConnectConfig(
            uri=self.get_notify_url_suffix(notifications_map.get_notifies(targets), app_config),
            app_id=app_config.app_id,
            secret=app_config.secret,
            timeout=NOTIFY_CONNECT_TIMEOUT,
        )

        start = time.perf_counter()
        outcome = self._transport.execute(app_config, connect_config)
        NOTIFY_LATENCY.observe(time.perf_counter() - start)

        if isinstance(outcome, Failed):
            NOTIFY_TOTAL.labels(result="failed").inc()
            if isinstance(outcome.error, ApolloSyncError):
                raise outcome.error
            raise TransportError(str(outcome.error)) from outcome.error
        if isinstance(outcome, Unchanged):
            NOTIFY_TOTAL.labels(result="unchanged").inc()
            self.touch_apollo_config_cache()
            return []
        try:
            notifications = self.to_notifications(outcome.body)
        except DecodeError:
            NOTIFY_TOTAL.labels(result="decode_error").inc()
            raise
        NOTIFY_TOTAL.labels(result="changed").inc()
        return notifications

    def to_notifications(self, body: bytes) -> list[Notification]:
        """Décode le corps du long poll (tableau JSON)."""
        try:
            return _NOTIFICATIONS.validate_json(body)
        except ValidationError as exc:
            self._log.error("notify_decode_failed", phase="notify", error=str(exc))
            raise DecodeError(f"invalid notifications payload: {exc}") from exc

    def touch_apollo_config_cache(self) -> None:
        """Point d'extension « not modified »; aucun effet par défaut."""
        return None

    # -------------------- Fetch --------------------

    def sync_with_namespace(self, namespace: str, app_config: AppConfig) -> ApolloConfig | None:
        """
        Récupère la configuration complète d'un namespace.

        Returns:
            ApolloConfig | None: La configuration, ou None si inchangée, en échec ou illisible.
        """
        connect_config = ConnectConfig(
            uri=self.get_sync_uri(app_config, namespace),
            app_id=app_config.app_id,
            secret=app_config.secret,
            timeout=app_config.sync_timeout,
            is_retry=True,
        )
        outcome = self._transport.execute(app_config, connect_config)
        if isinstance(outcome, Failed):
            FETCH_TOTAL.labels(result="failed").inc()
            self._log.error(
                "fetch_failed", phase="fetch", namespace=namespace, error=str(outcome.error)
            )
            return None
        if isinstance(outcome, Unchanged):
            FETCH_TOTAL.labels(result="unchanged").inc()
            self.touch_apollo_config_cache()
            return None
        try:
            config = self.create_apollo_config_with_json(outcome.body)
        except DecodeError as exc:
            FETCH_TOTAL.labels(result="decode_error").inc()
            self._log.error(
                "fetch_decode_failed", phase="fetch", namespace=namespace, error=str(exc)
            )
            return None
        except Exception as exc:  # un namespace en erreur n'interrompt pas la passe
            FETCH_TOTAL.labels(result="error").inc()
            self._log.error(
                "fetch_unexpected_error", phase="fetch", namespace=namespace, error=repr(exc)
            )
            return None
        FETCH_TOTAL.labels(result="changed").inc()
        return config

    def create_apollo_config_with_json(self, body: bytes) -> ApolloConfig:
        """Décode une réponse de fetch puis applique le parser du format du namespace."""
        try:
            config = ApolloConfig.model_validate_json(body)
        except ValidationError as exc:
            raise DecodeError(f"invalid config payload: {exc}") from exc
        return self._dispatcher.apply(config)

    # -------------------- Sauvegarde --------------------

    def load_backup_config(self, namespace: str, app_config: AppConfig) -> list[ApolloConfig]:
        """
        Charge la sauvegarde de chaque namespace du spécificateur (« a,b.yml »).

        Les namespaces absents ou illisibles sont ignorés (journalisés).
        """
        configs: list[ApolloConfig] = []
        for ns in split_namespaces(namespace):
            try:
                config = self._backup_store.load_config_file(app_config.backup_config_path, ns)
            except Exception as exc:  # stockage externe: toute erreur = pas de sauvegarde
                BACKUP_FALLBACK_TOTAL.labels(result="error").inc()
                self._log.error("backup_load_failed", phase="backup", namespace=ns, error=str(exc))
                continue
            if config is None:
                BACKUP_FALLBACK_TOTAL.labels(result="miss").inc()
                continue
            BACKUP_FALLBACK_TOTAL.labels(result="hit").inc()
            configs.append(config)
        if configs:
            self._log.info(
                "backup_fallback_used", phase="backup", namespaces=[c.namespace_name for c in configs]
            )
        return configs
