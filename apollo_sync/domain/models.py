"""
Modèles de données échangés avec le serveur de configuration.

Ce module définit les modèles Pydantic pour les notifications de changement (long poll) et les
instantanés de configuration par namespace, ainsi que les paramètres d'une requête.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from apollo_sync.core.http_constants import DEFAULT_SYNC_TIMEOUT

# Jeton utilisé pour un namespace jamais observé
DEFAULT_NOTIFICATION_ID = -1

# Clé sous laquelle le serveur range le contenu brut d'un namespace non-properties
CONTENT_KEY = "content"


class Notification(BaseModel):
    """
    Enregistrement de changement renvoyé par le long poll.

    Associe un namespace à sa dernière version de changement (opaque, attribuée par le serveur).
    """

    model_config = ConfigDict(populate_by_name=True)

    namespace_name: str = Field(alias="namespaceName")
    notification_id: int | str = Field(default=DEFAULT_NOTIFICATION_ID, alias="notificationId")


class ApolloConfig(BaseModel):
    """
    Instantané de configuration d'un namespace.

    Construit soit depuis une réponse de fetch, soit depuis la sauvegarde locale. Immuable: le
    remplacement du contenu après parsing produit une copie.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    app_id: str = Field(default="", alias="appId")
    cluster: str = Field(default="", alias="cluster")
    namespace_name: str = Field(alias="namespaceName")
    release_key: str = Field(default="", alias="releaseKey")
    configurations: dict[str, Any] = Field(default_factory=dict)

    def to_wire(self) -> dict[str, Any]:
        """Retourne la forme JSON (alias du protocole, dates et valeurs YAML en texte)."""
        return self.model_dump(mode="json", by_alias=True)


@dataclass(frozen=True)
class ConnectConfig:
    """Paramètres d'une requête vers le serveur (construits à chaque appel)."""

    uri: str
    app_id: str
    secret: str = ""
    timeout: float = DEFAULT_SYNC_TIMEOUT
    is_retry: bool = False
