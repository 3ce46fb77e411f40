"""Agrégation de la participation à partir des cumuls horaires par bureau.

Les bureaux téléphonent leurs cumuls heure par heure ; une heure pas encore
saisie apparaît souvent comme un 0 après des valeurs positives. Un tel 0 est
traité comme « non encore saisi » : la dernière valeur positive connue est
reprise (propagation). Une correction réelle à la baisse est indiscernable
d'un oubli de saisie dans ce modèle.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd

from municipales.config import HOURS
from municipales.data.schemas import TurnoutRow

_HOUR_VALUE = re.compile(r"(\d{2})")


@dataclass(frozen=True)
class TurnoutSummary:
    """Participation communale."""
    total_registered: int
    total_voters: int
    turnout_percent: float


@dataclass(frozen=True)
class HourlyTurnout:
    """Participation communale à une heure donnée."""
    hour: str
    voters: int
    percent: float
    delta: int


@dataclass(frozen=True)
class HourJump:
    """Plus forte progression sur une heure."""
    hour: str
    delta: int


@dataclass(frozen=True)
class StationTurnout:
    station_id: str
    registered: int
    voters: int
    percent: float


def _pct(n: float, d: float) -> float:
    return n / d * 100 if d > 0 else 0.0


def hour_value(key: str) -> int:
    """Heure (entier) contenue dans une clé "09h"."""
    m = _HOUR_VALUE.search(key)
    return int(m.group(1)) if m else 0


def _sorted_hours(row: TurnoutRow) -> List[str]:
    return sorted(row.hourly, key=hour_value)


def last_reported_hour(row: TurnoutRow) -> Optional[str]:
    """Dernière heure saisie (ordre chronologique), ou None."""
    hours = _sorted_hours(row)
    return hours[-1] if hours else None


def cumulative_at(row: TurnoutRow, hour: str) -> int:
    """Cumul à `hour`, un 0 après une valeur positive reprenant cette valeur."""
    value = row.hourly.get(hour, 0)
    if value != 0:
        return value

    target = hour_value(hour)
    last_positive = 0
    for key in _sorted_hours(row):
        if hour_value(key) >= target:
            break
        if row.hourly[key] > 0:
            last_positive = row.hourly[key]
    return last_positive


def final_count(row: TurnoutRow) -> int:
    """Votants en fin de relevé pour un bureau.

    Valeur de la dernière heure saisie si positive, sinon le maximum des
    cumuls propagés (cas d'une dernière heure jamais renseignée).
    """
    last = last_reported_hour(row)
    if last is None:
        return 0
    if row.hourly[last] > 0:
        return row.hourly[last]
    return max((cumulative_at(row, h) for h in row.hourly), default=0)


def aggregate(rows: Sequence[TurnoutRow]) -> TurnoutSummary:
    """Totaux communaux : inscrits, votants, taux de participation (%)."""
    total_registered = sum(r.registered for r in rows)
    total_voters = sum(final_count(r) for r in rows)
    return TurnoutSummary(
        total_registered=total_registered,
        total_voters=total_voters,
        turnout_percent=_pct(total_voters, total_registered),
    )


def hourly_evolution(
    rows: Sequence[TurnoutRow],
    hours: Sequence[str] = HOURS,
) -> List[HourlyTurnout]:
    """Évolution communale heure par heure (cumuls propagés)."""
    total_registered = sum(r.registered for r in rows)
    evolution = []
    previous = 0
    for hour in hours:
        voters = sum(cumulative_at(r, hour) for r in rows)
        evolution.append(HourlyTurnout(
            hour=hour,
            voters=voters,
            percent=_pct(voters, total_registered),
            delta=voters - previous,
        ))
        previous = voters
    return evolution


def evolution_frame(
    rows: Sequence[TurnoutRow],
    hours: Sequence[str] = HOURS,
) -> pd.DataFrame:
    """Tableau bureau × heure des cumuls propagés, avec une ligne TOTAL.

    Returns:
        DataFrame indexé par bureau, colonnes "inscrits" puis une par heure.
    """
    records = []
    for r in rows:
        record: Dict[str, int] = {"bureau": r.station_id, "inscrits": r.registered}
        for hour in hours:
            record[hour] = cumulative_at(r, hour)
        records.append(record)

    df = pd.DataFrame.from_records(records, columns=["bureau", "inscrits", *hours])
    df = df.set_index("bureau").astype(int)
    df.loc["TOTAL"] = df.sum(numeric_only=True)
    return df.astype(int)


def station_turnout(row: TurnoutRow) -> StationTurnout:
    voters = final_count(row)
    return StationTurnout(
        station_id=row.station_id,
        registered=row.registered,
        voters=voters,
        percent=_pct(voters, row.registered),
    )


def station_extremes(
    rows: Sequence[TurnoutRow],
) -> Tuple[Optional[StationTurnout], Optional[StationTurnout]]:
    """Bureaux de plus forte et de plus faible participation finale."""
    stations = [station_turnout(r) for r in rows if r.registered > 0]
    if not stations:
        return None, None
    best = max(stations, key=lambda s: s.percent)
    worst = min(stations, key=lambda s: s.percent)
    return best, worst


def _biggest_delta(values: Sequence[Tuple[str, int]]) -> Optional[HourJump]:
    jump: Optional[HourJump] = None
    previous = 0
    for hour, value in values:
        delta = value - previous
        if jump is None or delta > jump.delta:
            jump = HourJump(hour=hour, delta=delta)
        previous = value
    return jump


def biggest_jump(row: TurnoutRow, hours: Sequence[str] = HOURS) -> Optional[HourJump]:
    """Plus forte progression horaire d'un bureau (None si rien de saisi)."""
    last = last_reported_hour(row)
    if last is None:
        return None
    span = [h for h in hours if hour_value(h) <= hour_value(last)]
    return _biggest_delta([(h, cumulative_at(row, h)) for h in span])


def communal_biggest_jump(
    rows: Sequence[TurnoutRow],
    hours: Sequence[str] = HOURS,
) -> Optional[HourJump]:
    """Plus forte progression horaire à l'échelle de la commune."""
    reported = [h for h in (last_reported_hour(r) for r in rows) if h is not None]
    if not reported:
        return None
    last = max(hour_value(h) for h in reported)
    evolution = hourly_evolution(rows, [h for h in hours if hour_value(h) <= last])
    return _biggest_delta([(e.hour, e.voters) for e in evolution])


def ballot_shares(voters: int, blanks: int, nulls: int) -> Tuple[float, float]:
    """Part des blancs et des nuls parmi les votants (%)."""
    return _pct(blanks, voters), _pct(nulls, voters)


def abstention(total_registered: int, total_voters: int) -> Tuple[int, float]:
    """Nombre d'abstentionnistes et taux d'abstention (%)."""
    count = max(0, total_registered - total_voters)
    return count, _pct(count, total_registered)
