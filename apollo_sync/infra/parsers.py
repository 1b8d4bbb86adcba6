"""
Parsers de contenu par format de namespace.

Un namespace non-properties (`app.yml`, `app.json`...) arrive du serveur avec tout son contenu
sous la clé `content`. Les parsers convertissent ce texte en mapping clé/valeur; les structures
imbriquées sont aplaties en clés pointées (`db.host`).
"""

from __future__ import annotations

import json
from typing import Any, Protocol

import yaml

from apollo_sync.core.errors import ParseError

YML = "yml"
YAML = "yaml"
JSON = "json"
PROPERTIES = "properties"


class FormatParser(Protocol):
    """Convertit un contenu brut en mapping clé/valeur."""

    def parse(self, content: Any) -> dict[str, Any]:
        """Retourne le mapping (vide si rien d'exploitable)."""
        ...


def flatten(data: dict[str, Any], prefix: str = "") -> dict[str, Any]:
    """Aplatit un mapping imbriqué en clés pointées."""
    out: dict[str, Any] = {}
    for key, value in data.items():
        full = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict) and value:
            out.update(flatten(value, full))
        else:
            out[full] = value
    return out


class NormalParser:
    """Parser par défaut: laisse le contenu brut intact."""

    def parse(self, content: Any) -> dict[str, Any]:
        return {}


class YamlParser:
    """Parser YAML (PyYAML, chargement sûr)."""

    def parse(self, content: Any) -> dict[str, Any]:
        if not isinstance(content, str) or not content.strip():
            return {}
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as exc:
            raise ParseError(f"invalid yaml content: {exc}") from exc
        return flatten(data) if isinstance(data, dict) else {}


class JsonParser:
    """Parser JSON (objet racine uniquement)."""

    def parse(self, content: Any) -> dict[str, Any]:
        if not isinstance(content, str) or not content.strip():
            return {}
        try:
            data = json.loads(content)
        except json.JSONDecodeError as exc:
            raise ParseError(f"invalid json content: {exc}") from exc
        return flatten(data) if isinstance(data, dict) else {}


class PropertiesParser:
    """Parser `.properties` simple: `clé=valeur` ou `clé: valeur`, commentaires `#`/`!`."""

    def parse(self, content: Any) -> dict[str, Any]:
        if not isinstance(content, str):
            return {}
        out: dict[str, Any] = {}
        for raw in content.splitlines():
            line = raw.strip()
            if not line or line[0] in "#!":
                continue
            # premier séparateur rencontré
            idx = min((i for i in (line.find("="), line.find(":")) if i >= 0), default=-1)
            if idx <= 0:
                continue
            out[line[:idx].strip()] = line[idx + 1 :].strip()
        return out


class FormatParserRegistry:
    """Registre format → parser, avec un parser par défaut optionnel."""

    def __init__(self, default: FormatParser | None = None) -> None:
        """Initialise un registre vide."""
        self._parsers: dict[str, FormatParser] = {}
        self.default = default

    def register(self, key: str, parser: FormatParser) -> None:
        """Associe un parser à une clé de format (sans point: `yml`)."""
        self._parsers[key] = parser

    def unregister(self, key: str) -> None:
        """Retire le parser d'un format."""
        self._parsers.pop(key, None)

    def resolve(self, key: str) -> FormatParser | None:
        """Retourne le parser enregistré pour le format, ou None."""
        return self._parsers.get(key)

    def formats(self) -> list[str]:
        """Formats enregistrés."""
        return sorted(self._parsers)


def default_registry() -> FormatParserRegistry:
    """Registre standard: YAML/JSON/properties, NormalParser par défaut."""
    registry = FormatParserRegistry(default=NormalParser())
    yaml_parser = YamlParser()
    registry.register(YML, yaml_parser)
    registry.register(YAML, yaml_parser)
    registry.register(JSON, JsonParser())
    registry.register(PROPERTIES, PropertiesParser())
    return registry
