"""Découpage des spécificateurs de namespaces (« app,app.yml »)."""

from __future__ import annotations

NAMESPACE_SEPARATOR = ","


def split_namespaces(spec: str | None) -> list[str]:
    """Retourne les namespaces non vides, dans l'ordre, sans doublons."""
    out: list[str] = []
    for raw in (spec or "").split(NAMESPACE_SEPARATOR):
        name = raw.strip()
        if name and name not in out:
            out.append(name)
    return out
