"""
Exécute une passe de synchronisation et affiche un résumé JSON.

Usage:
    python -m apollo_sync.scripts.sync_once --app-id demo --namespaces application,app.yml

Code de sortie: 0 si au moins un namespace a été obtenu, 1 sinon.
"""

from __future__ import annotations

import argparse
import json
import sys

from apollo_sync.core.container import Container
from apollo_sync.core.logging import setup_logging
from apollo_sync.core.settings import Settings


def build_parser() -> argparse.ArgumentParser:
    """Construit le parser d'arguments de la commande."""
    p = argparse.ArgumentParser(description="Run one configuration sync pass")
    p.add_argument("--app-id", dest="app_id")
    p.add_argument("--cluster")
    p.add_argument("--namespaces", help="comma-separated namespace names")
    p.add_argument("--server", dest="server_url")
    p.add_argument("--backup-path", dest="backup_path")
    p.add_argument("--apply", action="store_true", help="install results (write backups)")
    return p


def settings_from_args(args: argparse.Namespace, base: Settings | None = None) -> Settings:
    """Applique les surcharges de la ligne de commande aux paramètres."""
    settings = base if base is not None else Settings()
    overrides = {
        "APOLLO_APP_ID": args.app_id,
        "APOLLO_CLUSTER": args.cluster,
        "APOLLO_NAMESPACE_NAME": args.namespaces,
        "APOLLO_SERVER_URL": args.server_url,
        "APOLLO_BACKUP_CONFIG_PATH": args.backup_path,
    }
    return settings.model_copy(update={k: v for k, v in overrides.items() if v is not None})


def main(argv: list[str] | None = None, container: Container | None = None) -> int:
    """Point d'entrée: une passe, résumé sur stdout."""
    args = build_parser().parse_args(argv)
    if container is None:
        settings = settings_from_args(args)
        setup_logging(settings.LOG_LEVEL, settings.LOG_JSON)
        container = Container(settings=settings)
    configs = container.sync()
    if args.apply:
        container.apply(configs)
    summary = [
        {
            "namespace": c.namespace_name,
            "releaseKey": c.release_key,
            "keys": sorted(c.configurations),
        }
        for c in configs
    ]
    print(json.dumps(summary, ensure_ascii=False, indent=2))
    return 0 if configs else 1


if __name__ == "__main__":
    sys.exit(main())
