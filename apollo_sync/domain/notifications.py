# ============================================================
# Module : apollo_sync/domain/notifications.py
# Objet  : Suivi des versions de changement par namespace.
# Invariants :
#  - Un namespace absent est « jamais observé » (jeton -1).
#  - La mise à jour d'un namespace est atomique (verrou de son shard).
#  - L'itération travaille sur une copie et ne bloque pas les écritures.
# ============================================================
"""Carte concurrente namespace → dernière version de changement observée.

La carte est découpée en shards, chacun protégé par son propre verrou: deux namespaces de shards
différents se mettent à jour sans contention, et une itération ne tient un verrou que le temps de
copier un shard.
"""

from __future__ import annotations

import json
import threading
import zlib
from collections.abc import Callable, Iterable

from apollo_sync.domain.models import DEFAULT_NOTIFICATION_ID, Notification

DEFAULT_SHARDS = 16

NotificationId = int | str


class _Shard:
    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.items: dict[str, NotificationId] = {}


class NotificationsMap:
    """Carte shardée des versions de changement (last-writer-wins)."""

    def __init__(self, shards: int = DEFAULT_SHARDS) -> None:
        """Initialise `shards` partitions vides."""
        self._shards = [_Shard() for _ in range(max(1, shards))]

    def _shard(self, namespace: str) -> _Shard:
        return self._shards[zlib.crc32(namespace.encode("utf-8")) % len(self._shards)]

    def get(self, namespace: str) -> NotificationId | None:
        """Retourne la version connue d'un namespace, ou None s'il n'a jamais été observé."""
        shard = self._shard(namespace)
        with shard.lock:
            return shard.items.get(namespace)

    def set_notify(self, namespace: str, notification_id: NotificationId) -> None:
        """Écrase la version d'un namespace."""
        if not namespace:
            return
        shard = self._shard(namespace)
        with shard.lock:
            shard.items[namespace] = notification_id

    def update_all_notifications(self, notifications: Iterable[Notification] | None) -> None:
        """Fusionne une réponse de long poll.

        Chaque namespace présent est écrasé sans condition: le serveur est seul maître des
        versions. Les entrées sans namespace sont ignorées.
        """
        for n in notifications or ():
            self.set_notify(n.namespace_name, n.notification_id)

    def get_notifications(self) -> dict[str, NotificationId]:
        """Retourne une copie de la carte (shard par shard)."""
        snapshot: dict[str, NotificationId] = {}
        for shard in self._shards:
            with shard.lock:
                snapshot.update(shard.items)
        return snapshot

    def range(self, fn: Callable[[str, NotificationId], bool]) -> None:
        """Itère sur une copie; s'arrête dès que `fn` renvoie False."""
        for namespace, notification_id in self.get_notifications().items():
            if not fn(namespace, notification_id):
                return

    def namespaces(self) -> list[str]:
        """Namespaces actuellement suivis."""
        return list(self.get_notifications())

    def get_notifies(self, namespaces: Iterable[str]) -> str:
        """Sérialise les paires namespace/version demandées pour le long poll.

        Args:
            namespaces: Namespaces à inclure, dans l'ordre voulu.

        Returns:
            str: Tableau JSON compact `[{"namespaceName": ..., "notificationId": ...}]`.
        """
        payload = []
        for namespace in namespaces:
            current = self.get(namespace)
            payload.append(
                {
                    "namespaceName": namespace,
                    "notificationId": DEFAULT_NOTIFICATION_ID if current is None else current,
                }
            )
        return json.dumps(payload, separators=(",", ":"))

    def __len__(self) -> int:
        total = 0
        for shard in self._shards:
            with shard.lock:
                total += len(shard.items)
        return total

    def __contains__(self, namespace: object) -> bool:
        return isinstance(namespace, str) and self.get(namespace) is not None
