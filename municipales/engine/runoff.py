"""Second tour : nécessité, qualification des listes, duel du second tour.

Règles (communes de plus de 1000 habitants) :
  - Élu au T1 si une liste obtient > 50% des exprimés et > 25% des inscrits
  - Qualifiées pour le T2 : listes ≥ 10% des exprimés ; si moins de deux
    listes franchissent ce seuil, les deux premières sont qualifiées
  - Au T2, la liste arrivée en tête l'emporte
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

from municipales.config import (
    SEUIL_FUSION,
    SEUIL_INSCRITS_T1,
    SEUIL_QUALIFICATION_T2,
    SEUIL_VICTOIRE_T1,
)
from municipales.engine.allocation import ListVotes


@dataclass
class RunoffPair:
    """Les deux listes arrivées en tête du premier tour."""
    first: ListVotes
    second: ListVotes
    tie: bool
    ranking: List[ListVotes] = field(default_factory=list)

    @property
    def qualified(self) -> List[str]:
        return [self.first.list_id, self.second.list_id]


def _ranking(results: Sequence[ListVotes]) -> List[ListVotes]:
    # Tri stable : à égalité de voix, l'ordre d'entrée est conservé
    return sorted(results, key=lambda r: r.votes, reverse=True)


def second_round_necessary(results_round1: Sequence[ListVotes], total_registered: int) -> bool:
    """Vrai si aucune liste n'est élue dès le premier tour.

    Args:
        results_round1: voix par liste au T1.
        total_registered: nombre total d'inscrits de la commune.
    """
    total_expressed = sum(r.votes for r in results_round1)
    if total_expressed <= 0:
        return True

    leader = _ranking(results_round1)[0]
    share_expressed = leader.votes / total_expressed
    share_registered = leader.votes / total_registered if total_registered > 0 else 0.0

    return not (share_expressed > SEUIL_VICTOIRE_T1 and share_registered > SEUIL_INSCRITS_T1)


def qualified_for_second_round(classement: Sequence[ListVotes], round_number: int) -> List[str]:
    """Listes qualifiées à l'issue d'un tour.

    Args:
        classement: voix par liste pour le tour.
        round_number: 1 (qualification T2) ou 2 (seule la liste en tête est retenue).

    Returns:
        Identifiants des listes qualifiées, par voix décroissantes.

    Raises:
        ValueError: classement vide, moins de deux listes au T1, tour invalide
            ou aucun suffrage exprimé.
    """
    if round_number not in (1, 2):
        raise ValueError(f"Tour invalide : {round_number} (1 ou 2 attendu).")
    if not classement:
        raise ValueError("Aucune liste dans le classement.")
    if round_number == 1 and len(classement) < 2:
        raise ValueError("Au moins 2 listes requises pour un second tour.")

    total_expressed = sum(r.votes for r in classement)
    if total_expressed <= 0:
        raise ValueError("Aucun suffrage exprimé : qualification impossible.")

    ranking = _ranking(classement)
    if round_number == 2:
        return [ranking[0].list_id]

    qualified = [r.list_id for r in ranking if r.votes / total_expressed >= SEUIL_QUALIFICATION_T2]
    if len(qualified) < 2:
        qualified = [r.list_id for r in ranking[:2]]
    return qualified


def mergeable_lists(classement: Sequence[ListVotes]) -> List[str]:
    """Listes entre 5% et 10% des exprimés, pouvant fusionner avec une liste qualifiée."""
    total_expressed = sum(r.votes for r in classement)
    if total_expressed <= 0:
        return []
    return [
        r.list_id for r in _ranking(classement)
        if SEUIL_FUSION <= r.votes / total_expressed < SEUIL_QUALIFICATION_T2
    ]


def determine_second_round_pair(results_round1: Sequence[ListVotes]) -> RunoffPair:
    """Les deux premières listes du T1, avec indicateur d'égalité parfaite.

    Raises:
        ValueError: moins de deux listes.
    """
    if len(results_round1) < 2:
        raise ValueError("Au moins 2 listes requises pour déterminer les qualifiés.")

    ranking = _ranking(results_round1)
    return RunoffPair(
        first=ranking[0],
        second=ranking[1],
        tie=ranking[0].votes == ranking[1].votes,
        ranking=ranking,
    )
