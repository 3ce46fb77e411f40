"""État de l'élection : tour en cours, verrouillages, listes qualifiées.

L'état est une valeur immuable passée explicitement au moteur ; chaque
action administrative renvoie un nouvel état.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Tuple


@dataclass(frozen=True)
class ElectionRoundState:
    """État de la journée électorale."""
    current_round: int = 1
    round1_locked: bool = False
    round2_locked: bool = False
    second_round_enabled: bool = False
    qualified: Tuple[str, ...] = ()

    def __post_init__(self):
        if self.current_round not in (1, 2):
            raise ValueError(f"Tour invalide : {self.current_round} (1 ou 2 attendu).")

    def is_locked(self, round_number: int) -> bool:
        _check_round(round_number)
        return self.round1_locked if round_number == 1 else self.round2_locked

    def can_edit(self, round_number: int) -> bool:
        """Saisie autorisée : tour non verrouillé, et T2 seulement s'il est ouvert."""
        if self.is_locked(round_number):
            return False
        if round_number == 2:
            return self.second_round_enabled or self.current_round == 2
        return True


def _check_round(round_number: int):
    if round_number not in (1, 2):
        raise ValueError(f"Tour invalide : {round_number} (1 ou 2 attendu).")


def enable_second_round(state: ElectionRoundState) -> ElectionRoundState:
    return replace(state, second_round_enabled=True)


def pass_to_second_round(
    state: ElectionRoundState,
    qualified: Iterable[str],
) -> ElectionRoundState:
    """Passe au second tour : verrouille le T1 et enregistre les qualifiés.

    Raises:
        ValueError: si moins de deux listes qualifiées ou déjà au T2.
    """
    if state.current_round == 2:
        raise ValueError("Le second tour est déjà en cours.")
    ids = tuple(dict.fromkeys(q for q in qualified if q))
    if len(ids) < 2:
        raise ValueError(f"Au moins 2 listes doivent être qualifiées ({len(ids)} fournie(s)).")
    return replace(
        state,
        current_round=2,
        round1_locked=True,
        second_round_enabled=True,
        qualified=ids,
    )


def lock_round(state: ElectionRoundState, round_number: int) -> ElectionRoundState:
    _check_round(round_number)
    field = "round1_locked" if round_number == 1 else "round2_locked"
    return replace(state, **{field: True})


def unlock_round(state: ElectionRoundState, round_number: int) -> ElectionRoundState:
    """Déverrouille un tour (action administrateur).

    Le T1 reste verrouillé une fois le second tour engagé.
    """
    _check_round(round_number)
    if round_number == 1 and state.current_round == 2:
        raise ValueError("Impossible de déverrouiller le T1 : le second tour est engagé.")
    field = "round1_locked" if round_number == 1 else "round2_locked"
    return replace(state, **{field: False})
