"""Résolution de l'adresse IP interne du client (transmise au serveur pour le routage)."""

from __future__ import annotations

import contextlib
import functools
import socket

_FALLBACK_IP = "127.0.0.1"
# Aucune donnée n'est envoyée: connect() sur UDP ne fait que choisir l'interface de sortie
_PROBE_ADDR = ("10.255.255.255", 1)


@functools.lru_cache(maxsize=1)
def get_internal_ip() -> str:
    """Retourne l'IP de l'interface sortante par défaut (résolue une seule fois)."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.connect(_PROBE_ADDR)
        return sock.getsockname()[0]
    except OSError:
        return _FALLBACK_IP
    finally:
        with contextlib.suppress(OSError):
            sock.close()
