"""Sauvegarde locale des configurations par namespace (fichiers JSON).

Chaque namespace est stocké dans `{path}/{namespace}.json`, au format du protocole (alias
`namespaceName`, `releaseKey`, ...). L'écriture est atomique: fichier temporaire puis
`os.replace`.
"""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
from pathlib import Path
from typing import Protocol

import structlog
from pydantic import ValidationError

from apollo_sync.core.errors import BackupLoadError
from apollo_sync.domain.models import ApolloConfig

BACKUP_SUFFIX = ".json"


class BackupStore(Protocol):
    """Interface du stockage de sauvegarde."""

    def load_config_file(self, path: str, namespace: str) -> ApolloConfig | None:
        """Charge la sauvegarde d'un namespace, ou None si absente."""
        ...


class FileBackupStore:
    """Stockage de sauvegarde sur disque local."""

    def __init__(self) -> None:
        """Initialize file backup store."""
        self._log = structlog.get_logger(__name__).bind(component="backup_store")

    @staticmethod
    def file_path(path: str, namespace: str) -> Path:
        """Chemin du fichier de sauvegarde d'un namespace."""
        return Path(path or ".") / f"{namespace}{BACKUP_SUFFIX}"

    def load_config_file(self, path: str, namespace: str) -> ApolloConfig | None:
        """
        Charge la configuration sauvegardée d'un namespace.

        Args:
            path: Répertoire de sauvegarde ("" = répertoire courant).
            namespace: Nom du namespace.

        Returns:
            ApolloConfig | None: La configuration, ou None si aucun fichier n'existe.

        Raises:
            BackupLoadError: Si le fichier existe mais est illisible ou invalide.
        """
        target = self.file_path(path, namespace)
        if not target.exists():
            return None
        try:
            raw = target.read_text(encoding="utf-8")
            return ApolloConfig.model_validate_json(raw)
        except (OSError, ValidationError) as exc:
            raise BackupLoadError(f"invalid backup file {target}: {exc}") from exc

    def write_config_file(self, config: ApolloConfig, path: str) -> Path:
        """
        Écrit la sauvegarde d'un namespace de façon atomique.

        Args:
            config: Configuration à persister.
            path: Répertoire de sauvegarde ("" = répertoire courant).

        Returns:
            Path: Chemin du fichier écrit.
        """
        target = self.file_path(path, config.namespace_name)
        target.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(config.to_wire(), ensure_ascii=False)
        tmp = tempfile.NamedTemporaryFile(
            mode="w", encoding="utf-8", dir=target.parent, delete=False, suffix=".tmp"
        )
        try:
            with tmp:
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp.name, target)
        except OSError:
            with contextlib.suppress(OSError):
                os.remove(tmp.name)
            raise
        self._log.debug("backup_written", namespace=config.namespace_name, path=str(target))
        return target
