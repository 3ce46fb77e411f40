"""Contrôles de cohérence des saisies.

Chaque contrôle renvoie un ValidationReport : les anomalies sont rapportées,
jamais corrigées ni levées, pour que l'écran de saisie puisse toutes les
afficher. Les messages citent la valeur attendue et la valeur constatée.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Sequence

from municipales.config import FIRST_HOUR, LAST_HOUR, SEUIL_PROPORTIONNELLE
from municipales.data.schemas import CandidateList, PollingStation, ResultRow, TurnoutRow
from municipales.engine.allocation import ListVotes
from municipales.engine.turnout import final_count, hour_value

LIST_ID_PATTERN = re.compile(r"^L\d+$")
STATION_ID_PATTERN = re.compile(r"^BV\d+$")
HOUR_KEY_PATTERN = re.compile(r"^\d{2}h$")
COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")


@dataclass
class ValidationReport:
    """Résultat d'un contrôle."""
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def merge(self, other: "ValidationReport") -> "ValidationReport":
        return ValidationReport(
            errors=self.errors + other.errors,
            warnings=self.warnings + other.warnings,
        )


def validate_turnout_row(row: TurnoutRow) -> ValidationReport:
    report = ValidationReport()
    prefix = f"Bureau {row.station_id} : "

    if row.registered <= 0:
        report.errors.append(prefix + f"nombre d'inscrits invalide ({row.registered})")

    for key in row.hourly:
        if not HOUR_KEY_PATTERN.match(key) or not FIRST_HOUR <= hour_value(key) <= LAST_HOUR:
            report.errors.append(prefix + f"format d'heure invalide ({key!r}, HHh attendu entre 09h et 20h)")

    last_positive = None
    for key in sorted(row.hourly, key=hour_value):
        value = row.hourly[key]
        if value < 0:
            report.errors.append(prefix + f"nombre de votants négatif à {key} ({value})")
        elif value > 0:
            if last_positive is not None and value < last_positive[1]:
                report.warnings.append(
                    prefix + f"cumul en baisse à {key} ({value}) après {last_positive[0]} ({last_positive[1]})"
                )
            last_positive = (key, value)

    voters = final_count(row)
    if row.registered > 0 and voters > row.registered:
        report.errors.append(
            prefix + f"votants ({voters}) supérieurs aux inscrits ({row.registered})"
        )
    return report


def validate_result_row(row: ResultRow) -> ValidationReport:
    report = ValidationReport()
    prefix = f"Bureau {row.station_id} : "

    for label, value in (
        ("votants", row.voters), ("blancs", row.blanks),
        ("nuls", row.nulls), ("exprimés", row.expressed),
    ):
        if value < 0:
            report.errors.append(prefix + f"nombre de {label} négatif ({value})")

    expected_voters = row.blanks + row.nulls + row.expressed
    if row.voters != expected_voters:
        report.errors.append(
            prefix + f"votants ({row.voters}) doit être égal à blancs + nuls + exprimés ({expected_voters})"
        )

    total_votes = sum(row.votes.values())
    if total_votes != row.expressed:
        report.errors.append(
            prefix + f"somme des voix ({total_votes}) doit être égale aux exprimés ({row.expressed})"
        )

    for list_id, votes in row.votes.items():
        if votes < 0:
            report.errors.append(prefix + f"voix négatives pour {list_id} ({votes})")

    if row.registered > 0 and row.voters > row.registered:
        report.errors.append(
            prefix + f"votants ({row.voters}) supérieurs aux inscrits ({row.registered})"
        )
    elif row.registered <= 0 and row.voters > 0:
        report.warnings.append(prefix + f"inscrits non renseignés pour {row.voters} votants")
    return report


def validate_candidate_list(candidate: CandidateList) -> ValidationReport:
    report = ValidationReport()
    if not LIST_ID_PATTERN.match(candidate.list_id):
        report.errors.append(f"Identifiant de liste invalide ({candidate.list_id!r}, format L1, L2...)")
    if not candidate.name.strip():
        report.errors.append(f"Liste {candidate.list_id} : nom de liste obligatoire")
    if not candidate.lead_last_name.strip():
        report.errors.append(f"Liste {candidate.list_id} : nom de la tête de liste obligatoire")
    if not candidate.lead_first_name.strip():
        report.errors.append(f"Liste {candidate.list_id} : prénom de la tête de liste obligatoire")
    if not COLOR_PATTERN.match(candidate.color):
        report.errors.append(
            f"Liste {candidate.list_id} : couleur invalide ({candidate.color!r}, format #RRGGBB)"
        )
    if candidate.average_age < 0:
        report.errors.append(f"Liste {candidate.list_id} : âge moyen négatif ({candidate.average_age})")
    elif candidate.average_age == 0:
        report.warnings.append(
            f"Liste {candidate.list_id} : âge moyen non renseigné, la liste perd tout départage à l'âge"
        )
    return report


def validate_polling_station(station: PollingStation) -> ValidationReport:
    report = ValidationReport()
    if not STATION_ID_PATTERN.match(station.station_id):
        report.errors.append(f"Identifiant de bureau invalide ({station.station_id!r}, format BV1, BV2...)")
    if not station.name.strip():
        report.errors.append(f"Bureau {station.station_id} : nom obligatoire")
    if not station.address.strip():
        report.errors.append(f"Bureau {station.station_id} : adresse obligatoire")
    if station.registered <= 0:
        report.errors.append(f"Bureau {station.station_id} : nombre d'inscrits invalide ({station.registered})")
    return report


def validate_rows(rows: Sequence, validator) -> ValidationReport:
    """Applique `validator` à chaque ligne et fusionne les rapports."""
    report = ValidationReport()
    for row in rows:
        report = report.merge(validator(row))
    return report


def validate_second_round_transition(
    results_round1: Sequence[ResultRow],
    candidates: Sequence[CandidateList],
) -> ValidationReport:
    """Préconditions du passage au second tour."""
    report = ValidationReport()
    if not results_round1:
        report.errors.append("Aucun résultat du premier tour disponible")
        return report

    active = [c for c in candidates if c.active_round1]
    if len(active) < 2:
        report.errors.append(f"Au moins 2 listes nécessaires pour un second tour ({len(active)} active(s))")

    if sum(r.expressed for r in results_round1) <= 0:
        report.errors.append("Aucun suffrage exprimé au premier tour")
    return report


def validate_seat_computation(
    results: Sequence[ListVotes],
    total_seats: int,
    threshold: float = SEUIL_PROPORTIONNELLE,
) -> ValidationReport:
    """Préconditions du calcul des sièges."""
    report = ValidationReport()
    if not results:
        report.errors.append("Aucun résultat disponible pour le calcul des sièges")
        return report
    if total_seats <= 0:
        report.errors.append(f"Nombre total de sièges invalide ({total_seats})")
    if not 0 <= threshold <= 1:
        report.errors.append(f"Seuil invalide ({threshold * 100:.1f}%, attendu entre 0 et 100%)")
    if sum(r.votes for r in results) <= 0:
        report.errors.append("Aucun suffrage exprimé")
    return report
