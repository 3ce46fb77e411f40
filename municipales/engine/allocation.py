"""Plus forte moyenne et répartition des sièges avec prime majoritaire.

Références :
  - Code électoral, art. L262 (prime majoritaire, plus forte moyenne)
  - Code électoral, art. L273-8 (conseillers communautaires)

Départage à égalité de moyenne :
  1. la liste ayant le plus de suffrages ;
  2. à égalité de suffrages, la liste dont la moyenne d'âge est la plus élevée ;
  3. à défaut, l'ordre de présentation des listes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from municipales.config import QUOTIENT_EPSILON, SEUIL_PROPORTIONNELLE, majority_bonus_seats

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ListVotes:
    """Voix d'une liste (entrée du moteur)."""
    list_id: str
    votes: int
    name: str = ""
    average_age: float = 0.0


@dataclass
class SeatAllocation:
    """Sièges attribués à une liste."""
    list_id: str
    name: str
    votes: int
    percent: float
    eligible: bool
    bonus_seats: int = 0
    proportional_seats: int = 0

    @property
    def total_seats(self) -> int:
        return self.bonus_seats + self.proportional_seats


def _is_eligible(votes: int, total_votes: int, threshold: float) -> bool:
    return total_votes > 0 and votes / total_votes >= threshold


def _tie_break_key(lst: ListVotes) -> Tuple[int, float]:
    return (lst.votes, lst.average_age)


def _pick(candidates: List[int], lists: Sequence[ListVotes]) -> int:
    """Départage des indices `candidates` : voix, puis âge, puis ordre d'entrée."""
    best = candidates[0]
    for idx in candidates[1:]:
        if _tie_break_key(lists[idx]) > _tie_break_key(lists[best]):
            best = idx
    if len(candidates) > 1:
        logger.debug(
            "Égalité entre %s départagée au profit de %s",
            [lists[i].list_id for i in candidates], lists[best].list_id,
        )
    return best


def highest_averages(
    lists: Sequence[ListVotes],
    seats: int,
    threshold: float = SEUIL_PROPORTIONNELLE,
) -> Dict[str, int]:
    """Répartition à la plus forte moyenne, siège par siège.

    À chaque siège, la moyenne de chaque liste éligible est
    voix / (sièges déjà obtenus + 1) ; le siège va à la plus forte.
    Deux moyennes sont égales si elles diffèrent de moins de QUOTIENT_EPSILON.

    Args:
        lists: listes en compétition.
        seats: nombre de sièges à répartir.
        threshold: seuil d'éligibilité (fraction des voix, ex. 0.05).

    Returns:
        dict list_id → sièges (toutes les listes, 0 pour les non éligibles).
    """
    result = {lst.list_id: 0 for lst in lists}
    total_votes = sum(lst.votes for lst in lists)
    if seats <= 0 or total_votes <= 0:
        return result

    eligible = [i for i, lst in enumerate(lists) if _is_eligible(lst.votes, total_votes, threshold)]
    if not eligible:
        # Aucune liste éligible → répartir entre les listes ayant des voix (cas dégénéré)
        logger.warning("Aucune liste n'atteint le seuil de %.1f%%", threshold * 100)
        eligible = [i for i, lst in enumerate(lists) if lst.votes > 0]

    won = {i: 0 for i in eligible}
    for _ in range(seats):
        best_quotient = -1.0
        tied: List[int] = []
        for i in eligible:
            quotient = lists[i].votes / (won[i] + 1)
            if quotient > best_quotient + QUOTIENT_EPSILON:
                best_quotient = quotient
                tied = [i]
            elif abs(quotient - best_quotient) <= QUOTIENT_EPSILON:
                tied.append(i)
        won[_pick(tied, lists)] += 1

    for i, n in won.items():
        result[lists[i].list_id] += n
    return result


def _bonus_winner(lists: Sequence[ListVotes]) -> int:
    top = max(lst.votes for lst in lists)
    return _pick([i for i, lst in enumerate(lists) if lst.votes == top], lists)


def _check_total(allocations: List[SeatAllocation], total_seats: int):
    awarded = sum(a.total_seats for a in allocations)
    if awarded != total_seats:
        logger.warning("%d sièges attribués au lieu de %d", awarded, total_seats)


def _empty_allocation(lists: Sequence[ListVotes]) -> List[SeatAllocation]:
    return [
        SeatAllocation(list_id=lst.list_id, name=lst.name, votes=lst.votes, percent=0.0, eligible=False)
        for lst in lists
    ]


def allocate_municipal_seats(
    lists: Sequence[ListVotes],
    total_seats: int,
    threshold: float = SEUIL_PROPORTIONNELLE,
) -> List[SeatAllocation]:
    """Sièges au conseil municipal : prime majoritaire puis plus forte moyenne.

    La liste arrivée en tête reçoit la moitié des sièges (arrondie à l'entier
    supérieur), puis participe avec les autres listes éligibles à la
    répartition proportionnelle du solde. Ses moyennes ne tiennent compte
    que des sièges obtenus à la proportionnelle.

    Args:
        lists: voix par liste (suffrages exprimés).
        total_seats: effectif du conseil.
        threshold: seuil d'éligibilité (défaut 5%).

    Returns:
        SeatAllocation par liste, dans l'ordre d'entrée.
    """
    if not lists:
        return []
    total_votes = sum(lst.votes for lst in lists)
    if total_votes <= 0 or total_seats <= 0:
        return _empty_allocation(lists)

    bonus = majority_bonus_seats(total_seats)
    winner = _bonus_winner(lists)
    proportional = highest_averages(lists, total_seats - bonus, threshold)

    allocations = []
    for i, lst in enumerate(lists):
        allocations.append(SeatAllocation(
            list_id=lst.list_id,
            name=lst.name,
            votes=lst.votes,
            percent=lst.votes / total_votes * 100,
            eligible=_is_eligible(lst.votes, total_votes, threshold),
            bonus_seats=bonus if i == winner else 0,
            proportional_seats=proportional[lst.list_id],
        ))

    _check_total(allocations, total_seats)
    return allocations


def allocate_community_seats(
    lists: Sequence[ListVotes],
    total_seats: int,
    threshold: float = SEUIL_PROPORTIONNELLE,
) -> List[SeatAllocation]:
    """Sièges au conseil communautaire : plus forte moyenne, sans prime.

    Args:
        lists: voix municipales par liste.
        total_seats: sièges communautaires de la commune.
        threshold: seuil d'éligibilité (défaut 5%).

    Returns:
        SeatAllocation par liste, dans l'ordre d'entrée.
    """
    if not lists:
        return []
    total_votes = sum(lst.votes for lst in lists)
    if total_votes <= 0 or total_seats <= 0:
        return _empty_allocation(lists)

    proportional = highest_averages(lists, total_seats, threshold)
    allocations = [
        SeatAllocation(
            list_id=lst.list_id,
            name=lst.name,
            votes=lst.votes,
            percent=lst.votes / total_votes * 100,
            eligible=_is_eligible(lst.votes, total_votes, threshold),
            proportional_seats=proportional[lst.list_id],
        )
        for lst in lists
    ]
    _check_total(allocations, total_seats)
    return allocations


def compute_quotient_table(
    lists: Sequence[ListVotes],
    max_divisor: int = 20,
) -> List[Tuple[str, int, float]]:
    """Table des quotients (utile pour le débogage / l'affichage du calcul).

    Returns:
        Liste de (list_id, diviseur, quotient) triée par quotient décroissant.
    """
    table = []
    for lst in lists:
        for d in range(1, max_divisor + 1):
            table.append((lst.list_id, d, lst.votes / d))
    table.sort(key=lambda x: x[2], reverse=True)
    return table


def allocation_report(
    allocations: Sequence[SeatAllocation],
    total_seats: int,
    threshold: float = SEUIL_PROPORTIONNELLE,
    with_bonus: bool = True,
) -> Dict[str, object]:
    """Résumé du calcul, pour l'affichage ou l'export."""
    total_votes = sum(a.votes for a in allocations)
    bonus = majority_bonus_seats(total_seats) if with_bonus and total_seats > 0 else 0
    winner: Optional[str] = next((a.list_id for a in allocations if a.bonus_seats), None)
    return {
        "total_expressed": total_votes,
        "threshold_pct": threshold * 100,
        "threshold_votes": total_votes * threshold,
        "total_seats": total_seats,
        "bonus_seats": bonus,
        "proportional_seats": max(0, total_seats - bonus),
        "bonus_winner": winner,
        "seats_awarded": sum(a.total_seats for a in allocations),
        "details": list(allocations),
    }
