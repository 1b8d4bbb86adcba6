"""
Erreurs du client de synchronisation.

Toutes les erreurs récupérables dérivent de `ApolloSyncError` et ne sortent jamais de
`SyncEngine.sync`. Seule `MissingAppConfigError` signale un bug de l'appelant.
"""

from __future__ import annotations


class ApolloSyncError(Exception):
    """Erreur de base du client."""


class TransportError(ApolloSyncError):
    """Échec d'une requête avant d'obtenir une réponse exploitable."""


class RemoteNetworkError(TransportError):
    """Erreur réseau (timeout, connexion refusée, TLS...)."""


class RemoteHTTPError(TransportError):
    """Statut HTTP inattendu renvoyé par le serveur de configuration."""

    def __init__(self, status_code: int, message: str | None = None) -> None:
        """Initialize remote HTTP error."""
        self.status_code = status_code
        super().__init__(message or f"config server http error: {status_code}")


class DecodeError(ApolloSyncError):
    """Corps de réponse illisible (JSON invalide ou forme inattendue)."""


class ParseError(ApolloSyncError):
    """Contenu brut d'un namespace non interprétable par son parser."""


class BackupLoadError(ApolloSyncError):
    """Fichier de sauvegarde présent mais illisible."""


class MissingAppConfigError(RuntimeError):
    """Aucune AppConfig fournie: violation de contrat, jamais rattrapée."""
