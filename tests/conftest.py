"""Configuration de test pour pytest avec gestion des chemins.

Ce module configure pytest pour résoudre les imports `apollo_sync` en ajoutant la racine du projet
au sys.path, et fournit les fixtures communes (AppConfig, transport scripté, sauvegarde mémoire).
"""

import os
import sys

import pytest

# Ensure project root is on sys.path so that
# imports like `from apollo_sync...` resolve.
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from apollo_sync.domain.app_config import AppConfig  # noqa: E402
from tests.fakes import InMemoryBackupStore, ScriptedTransport  # noqa: E402


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    """AppConfig de test: deux namespaces, sauvegarde dans un répertoire temporaire."""
    return AppConfig(
        app_id="demo",
        cluster="default",
        namespace_name="app,app.yml",
        server_url="http://config.test",
        backup_config_path=str(tmp_path),
    )


@pytest.fixture
def transport() -> ScriptedTransport:
    """Transport scripté qui enregistre chaque requête."""
    return ScriptedTransport()


@pytest.fixture
def backup_store() -> InMemoryBackupStore:
    """Stockage de sauvegarde en mémoire."""
    return InMemoryBackupStore()
