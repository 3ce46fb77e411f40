"""Consolidation communale des résultats par bureau.

Somme des inscrits, votants, blancs, nuls, exprimés et des voix par liste,
puis classement des listes actives du tour pour les calculs de sièges.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import pandas as pd

from municipales.data.schemas import CandidateList, ResultRow
from municipales.engine.allocation import ListVotes
from municipales.engine.turnout import abstention, ballot_shares

_COUNT_COLUMNS = ["inscrits", "votants", "blancs", "nuls", "exprimes"]


@dataclass
class ConsolidatedResults:
    """Totaux communaux d'un tour."""
    registered: int = 0
    voters: int = 0
    blanks: int = 0
    nulls: int = 0
    expressed: int = 0
    votes_by_list: Dict[str, int] = field(default_factory=dict)
    declared_stations: int = 0
    validated_stations: int = 0

    @property
    def turnout_percent(self) -> float:
        return self.voters / self.registered * 100 if self.registered > 0 else 0.0

    @property
    def abstention(self) -> int:
        return abstention(self.registered, self.voters)[0]

    @property
    def abstention_percent(self) -> float:
        return abstention(self.registered, self.voters)[1]

    @property
    def blank_percent(self) -> float:
        return ballot_shares(self.voters, self.blanks, self.nulls)[0]

    @property
    def null_percent(self) -> float:
        return ballot_shares(self.voters, self.blanks, self.nulls)[1]


def _is_declared(row: ResultRow) -> bool:
    return bool(row.voters or row.expressed or row.blanks or row.nulls or row.validated)


def results_frame(rows: Sequence[ResultRow]) -> pd.DataFrame:
    """Un bureau par ligne : comptes puis une colonne de voix par liste."""
    list_ids: List[str] = []
    for r in rows:
        for list_id in r.votes:
            if list_id not in list_ids:
                list_ids.append(list_id)

    records = [
        {
            "bureau": r.station_id,
            "inscrits": r.registered,
            "votants": r.voters,
            "blancs": r.blanks,
            "nuls": r.nulls,
            "exprimes": r.expressed,
            **{list_id: r.votes.get(list_id, 0) for list_id in list_ids},
        }
        for r in rows
    ]
    df = pd.DataFrame.from_records(records, columns=["bureau", *_COUNT_COLUMNS, *list_ids])
    return df.set_index("bureau")


def consolidate_results(rows: Sequence[ResultRow]) -> ConsolidatedResults:
    """Agrège les résultats de tous les bureaux."""
    if not rows:
        return ConsolidatedResults()

    df = results_frame(rows)
    totals = df.sum(numeric_only=True)
    list_ids = [c for c in df.columns if c not in _COUNT_COLUMNS]

    return ConsolidatedResults(
        registered=int(totals["inscrits"]),
        voters=int(totals["votants"]),
        blanks=int(totals["blancs"]),
        nulls=int(totals["nuls"]),
        expressed=int(totals["exprimes"]),
        votes_by_list={list_id: int(totals[list_id]) for list_id in list_ids},
        declared_stations=sum(1 for r in rows if _is_declared(r)),
        validated_stations=sum(1 for r in rows if r.validated),
    )


def list_standings(
    consolidated: ConsolidatedResults,
    candidates: Sequence[CandidateList],
    round_number: int,
) -> List[ListVotes]:
    """Listes actives du tour avec leurs voix, par voix décroissantes.

    L'ordre de présentation (`order`) départage les listes à égalité de voix.
    """
    active = [c for c in candidates if c.is_active(round_number)]
    active.sort(key=lambda c: c.order)
    standings = [
        ListVotes(
            list_id=c.list_id,
            votes=consolidated.votes_by_list.get(c.list_id, 0),
            name=c.name or c.list_id,
            average_age=c.average_age,
        )
        for c in active
    ]
    standings.sort(key=lambda lv: lv.votes, reverse=True)
    return standings
