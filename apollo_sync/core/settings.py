"""Définition et chargement des paramètres du client de configuration.

Objectif du module
------------------
- Centraliser les paramètres (env/.env) via Pydantic Settings
- Résoudre le fichier `.env` à utiliser selon la stratégie: ENV_FILE > .env.{APP_ENV} > .env
"""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Détermination du fichier .env à utiliser avec priorité:
# 1) ENV_FILE (chemin explicite)
# 2) .env.{APP_ENV} si présent
# 3) .env (défaut)
_cwd = Path.cwd()
_env_file_from_env = os.getenv("ENV_FILE")
if _env_file_from_env:
    _ENV_FILE_PATH = _env_file_from_env
else:
    _app_env = os.getenv("APP_ENV", "dev")
    _candidate_specific = _cwd / f".env.{_app_env}"
    _candidate_default = _cwd / ".env"
    if _candidate_specific.exists():
        _ENV_FILE_PATH = _candidate_specific
    else:
        _ENV_FILE_PATH = _candidate_default


class Settings(BaseSettings):
    """Modèle de configuration chargé depuis l'environnement et .env."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE_PATH,
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
        extra="ignore",
    )
    APP_ENV: str = "dev"

    # Identité du client
    APOLLO_APP_ID: str = ""
    APOLLO_CLUSTER: str = "default"
    APOLLO_NAMESPACE_NAME: str = "application"  # liste séparée par des virgules
    APOLLO_SERVER_URL: str = "http://localhost:8080"
    APOLLO_SECRET: str = ""

    # Sauvegarde locale
    APOLLO_BACKUP_CONFIG_PATH: str = ""
    APOLLO_IS_BACKUP_CONFIG: bool = True

    # Réseau
    APOLLO_SYNC_TIMEOUT_S: float = 10.0
    APOLLO_CLIENT_IP: str | None = None
    APOLLO_FETCH_WORKERS: int = 1

    # Logs
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False


def get_settings() -> Settings:
    """Construit et retourne la configuration du client."""
    return Settings()
