"""Signature HMAC des requêtes vers le serveur de configuration.

Ne journalise jamais le secret ni la signature.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import time

AUTHORIZATION_HEADER = "Authorization"
TIMESTAMP_HEADER = "Timestamp"


def sign_string(secret: str, string_to_sign: str) -> str:
    """Retourne base64(HMAC-SHA1(secret, string_to_sign))."""
    digest = hmac.new(
        secret.encode("utf-8"), string_to_sign.encode("utf-8"), hashlib.sha1
    ).digest()
    return base64.b64encode(digest).decode("utf-8")


def auth_headers(
    app_id: str, secret: str, path_with_query: str, timestamp_ms: int | None = None
) -> dict[str, str]:
    """Construit les en-têtes `Authorization`/`Timestamp`; vide sans secret."""
    if not secret:
        return {}
    if timestamp_ms is None:
        timestamp_ms = int(round(time.time() * 1000))
    ts = str(timestamp_ms)
    signature = sign_string(secret, f"{ts}\n{path_with_query}")
    return {
        AUTHORIZATION_HEADER: f"Apollo {app_id}:{signature}",
        TIMESTAMP_HEADER: ts,
    }
