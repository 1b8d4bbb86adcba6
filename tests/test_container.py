# ============================================================
# Tests : tests/test_container.py
# Objet  : Câblage settings → AppConfig → moteur, installation des résultats.
# ============================================================
"""Tests pour le conteneur et les paramètres du client."""

from __future__ import annotations

from typing import Any

from apollo_sync.core import container as container_mod
from apollo_sync.core.container import Container
from apollo_sync.core.errors import RemoteNetworkError
from apollo_sync.core.settings import Settings, get_settings
from apollo_sync.domain.app_config import AppConfig
from apollo_sync.domain.models import CONTENT_KEY
from apollo_sync.domain.outcome import Failed
from apollo_sync.infra.backup_store import FileBackupStore
from tests.fakes import ScriptedTransport, config_body, namespace_of, notify_body


def _settings(tmp_path, **overrides: Any) -> Settings:
    values = {
        "APOLLO_APP_ID": "demo",
        "APOLLO_NAMESPACE_NAME": "app,app.yml",
        "APOLLO_SERVER_URL": "http://config.test",
        "APOLLO_BACKUP_CONFIG_PATH": str(tmp_path),
        "APOLLO_CLIENT_IP": "192.168.1.20",
    }
    values.update(overrides)
    return Settings(**values)


def test_settings_read_from_env(monkeypatch: Any) -> None:
    """Teste la lecture des paramètres depuis l'environnement."""
    monkeypatch.setenv("APOLLO_APP_ID", "from-env")
    monkeypatch.setenv("APOLLO_CLUSTER", "prod")
    monkeypatch.setenv("APOLLO_FETCH_WORKERS", "4")
    monkeypatch.setenv("APOLLO_IS_BACKUP_CONFIG", "false")
    s = get_settings()
    assert s.APOLLO_APP_ID == "from-env"
    assert s.APOLLO_CLUSTER == "prod"
    assert s.APOLLO_FETCH_WORKERS == 4
    assert s.APOLLO_IS_BACKUP_CONFIG is False
    cfg = AppConfig.from_settings(s)
    assert cfg.app_id == "from-env"
    assert cfg.cluster == "prod"
    assert cfg.is_backup_config is False


def test_app_config_namespaces() -> None:
    """Teste le découpage des namespaces configurés."""
    cfg = AppConfig(app_id="demo", namespace_name="a, b.yml,,a")
    assert cfg.namespaces() == ["a", "b.yml"]


def test_container_sync_and_apply_writes_backup(tmp_path) -> None:
    """Teste une passe complète puis l'installation (release key + sauvegarde)."""
    transport = ScriptedTransport(
        notify=notify_body(("app.yml", 4)),
        fetch={"app.yml": config_body("app.yml", "rk-9", {CONTENT_KEY: "a: 1"})},
    )
    c = Container(settings=_settings(tmp_path), transport=transport)
    configs = c.sync()
    assert [x.namespace_name for x in configs] == ["app.yml"]
    # l'IP configurée remplace la résolution réseau
    assert transport.fetch_calls[0].uri.endswith("&ip=192.168.1.20")

    c.apply(configs)
    assert c.app_config.get_current_apollo_config().get_release_key("app.yml") == "rk-9"
    restored = FileBackupStore().load_config_file(str(tmp_path), "app.yml")
    assert restored is not None
    assert restored.configurations == {"a": 1}


def test_container_backup_roundtrip_when_remote_down(tmp_path) -> None:
    """Teste qu'une sauvegarde écrite par `apply` sert au repli de la passe suivante."""
    transport = ScriptedTransport(
        notify=notify_body(("app", 1)),
        fetch={"app": config_body("app", "rk-1", {"k": "v"})},
    )
    c = Container(settings=_settings(tmp_path), transport=transport)
    c.apply(c.sync())
    transport.notify = Failed(RemoteNetworkError("down"))
    again = c.sync()
    assert [(x.namespace_name, x.release_key) for x in again] == [("app", "rk-1")]
    assert [namespace_of(x.uri) for x in transport.fetch_calls] == ["app"]


def test_apply_without_backup(tmp_path) -> None:
    """Teste que `apply` n'écrit rien quand la sauvegarde est désactivée."""
    transport = ScriptedTransport(
        notify=notify_body(("app", 1)), fetch={"app": config_body("app", "rk", {})}
    )
    c = Container(settings=_settings(tmp_path, APOLLO_IS_BACKUP_CONFIG=False), transport=transport)
    c.apply(c.sync())
    assert list(tmp_path.iterdir()) == []
    assert c.app_config.get_current_apollo_config().get_release_key("app") == "rk"


def test_default_container_is_shared(monkeypatch: Any, tmp_path) -> None:
    """Teste que l'instance par défaut est construite une seule fois."""
    monkeypatch.setenv("APOLLO_APP_ID", "shared")
    container_mod.get_container.cache_clear()
    try:
        first = container_mod.get_container()
        assert first is container_mod.get_container()
        assert first.app_config.app_id == "shared"
    finally:
        container_mod.get_container().transport.close()
        container_mod.get_container.cache_clear()


def test_apply_yaml_dates_then_reload_backup(tmp_path) -> None:
    """Teste qu'une date YAML n'interrompt pas l'installation et se relit depuis la sauvegarde."""
    transport = ScriptedTransport(
        notify=notify_body(("app.yml", 1), ("app", 2)),
        fetch={
            "app.yml": config_body("app.yml", "rk-yml", {CONTENT_KEY: "released: 2024-01-01"}),
            "app": config_body("app", "rk-app", {"k": "v"}),
        },
    )
    c = Container(settings=_settings(tmp_path), transport=transport)
    c.apply(c.sync())
    current = c.app_config.get_current_apollo_config()
    assert current.get_release_key("app.yml") == "rk-yml"
    assert current.get_release_key("app") == "rk-app"
    store = FileBackupStore()
    assert store.load_config_file(str(tmp_path), "app.yml").configurations == {
        "released": "2024-01-01"
    }
    assert store.load_config_file(str(tmp_path), "app").configurations == {"k": "v"}
