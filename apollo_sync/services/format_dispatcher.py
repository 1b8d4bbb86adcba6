"""Sélection du parser d'un namespace et remplacement de son contenu.

Le format est dérivé du suffixe du nom (`app.yml` → `yml`). À défaut de parser enregistré, le
parser par défaut du registre est utilisé; sans parser du tout, la configuration est renvoyée
telle quelle.
"""

from __future__ import annotations

import structlog

from apollo_sync.app.metrics import PARSE_ERRORS
from apollo_sync.domain.models import CONTENT_KEY, ApolloConfig
from apollo_sync.infra.parsers import FormatParser, FormatParserRegistry, default_registry


def format_of(namespace: str) -> str:
    """Retourne le suffixe après le dernier point, ou "" s'il n'y en a pas."""
    _, dot, suffix = namespace.rpartition(".")
    return suffix if dot else ""


class FormatDispatcher:
    """Applique le parser adapté au contenu brut d'une configuration."""

    def __init__(self, registry: FormatParserRegistry | None = None) -> None:
        """Initialize dispatcher with the given (or standard) parser registry."""
        self.registry = registry if registry is not None else default_registry()
        self._log = structlog.get_logger(__name__).bind(component="format_dispatcher")

    def parser_for(self, namespace: str) -> FormatParser | None:
        """Parser du format du namespace, sinon le parser par défaut, sinon None."""
        parser = self.registry.resolve(format_of(namespace))
        if parser is None:
            parser = self.registry.default
        return parser

    def apply(self, config: ApolloConfig) -> ApolloConfig:
        """
        Remplace le contenu de la configuration par le mapping parsé.

        Le remplacement n'a lieu que si le parsing produit au moins une entrée: un parsing vide
        ou en erreur conserve le contenu brut.

        Args:
            config: Configuration décodée depuis la réponse du serveur.

        Returns:
            ApolloConfig: La configuration d'origine ou une copie au contenu remplacé.
        """
        parser = self.parser_for(config.namespace_name)
        if parser is None:
            return config
        try:
            parsed = parser.parse(config.configurations.get(CONTENT_KEY))
        except Exception as exc:  # parser enregistré: toute erreur = contenu brut conservé
            fmt = format_of(config.namespace_name) or "default"
            PARSE_ERRORS.labels(format=fmt).inc()
            self._log.debug(
                "format_parse_failed",
                namespace=config.namespace_name,
                phase="parse",
                format=fmt,
                error=str(exc),
            )
            return config
        if not parsed:
            return config
        return config.model_copy(update={"configurations": parsed})
