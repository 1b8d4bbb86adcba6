"""
Résultat d'un appel au transport.

Une requête aboutit d'exactement une des trois façons: contenu inchangé (304), nouveau contenu
(corps brut), ou échec (erreur propagée, aucun contenu).
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Unchanged:
    """Le serveur signale « not modified »."""


@dataclass(frozen=True)
class Changed:
    """Le serveur renvoie un nouveau contenu."""

    body: bytes


@dataclass(frozen=True)
class Failed:
    """La requête a échoué avant d'obtenir une réponse exploitable."""

    error: Exception


Outcome = Unchanged | Changed | Failed
