"""Constantes électorales, seuils, heures de saisie — municipales 2026.

Communes de plus de 1000 habitants :
  - Scrutin de liste à deux tours, prime majoritaire de 50% (arrondie au supérieur)
  - Proportionnelle à la plus forte moyenne entre listes ≥ 5% des exprimés
  - Conseil communautaire : répartition proportionnelle sans prime
"""

from __future__ import annotations

import math
import warnings
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple


# ---------------------------------------------------------------------------
# Seuils légaux
# ---------------------------------------------------------------------------

SEUIL_PROPORTIONNELLE = 0.05    # 5% des exprimés → participe à la répartition des sièges
SEUIL_QUALIFICATION_T2 = 0.10   # 10% des exprimés → qualifié T2
SEUIL_FUSION = 0.05             # 5-10% → peut fusionner avec une liste qualifiée
SEUIL_VICTOIRE_T1 = 0.50        # > 50% des exprimés au T1...
SEUIL_INSCRITS_T1 = 0.25        # ... et > 25% des inscrits → élu au T1

PRIME_MAJORITAIRE_FRACTION = 0.50

# Tolérance d'égalité entre deux moyennes (plus forte moyenne)
QUOTIENT_EPSILON = 1e-6


# ---------------------------------------------------------------------------
# Heures de relevé de la participation (cumul horaire)
# ---------------------------------------------------------------------------

HOURS: Tuple[str, ...] = tuple(f"{h:02d}h" for h in range(9, 21))  # 09h .. 20h
FIRST_HOUR = 9
LAST_HOUR = 20


# ---------------------------------------------------------------------------
# Tables de la source tabulaire (onglets du classeur)
# ---------------------------------------------------------------------------

SHEET_NAMES: Dict[str, str] = {
    "config": "Config",
    "stations": "Bureaux",
    "candidates": "Candidats",
    "turnout_1": "Participation_T1",
    "turnout_2": "Participation_T2",
    "results_1": "Resultats_T1",
    "results_2": "Resultats_T2",
    "state": "ElectionsState",
}


def turnout_table(round_number: int) -> str:
    """Nom de l'onglet de participation pour un tour."""
    return SHEET_NAMES[f"turnout_{_check_round(round_number)}"]


def results_table(round_number: int) -> str:
    """Nom de l'onglet de résultats pour un tour."""
    return SHEET_NAMES[f"results_{_check_round(round_number)}"]


def _check_round(round_number: int) -> int:
    if round_number not in (1, 2):
        raise ValueError(f"Tour invalide : {round_number} (1 ou 2 attendu).")
    return round_number


# ---------------------------------------------------------------------------
# Effectif du conseil municipal : barème CGCT art. L2121-2
# ---------------------------------------------------------------------------

# (population minimale, nombre de conseillers)
CGCT_SEATS_SCALE: List[Tuple[int, int]] = [
    (0, 7),
    (100, 11),
    (500, 15),
    (1_500, 19),
    (2_500, 23),
    (3_500, 27),
    (5_000, 29),
    (10_000, 33),
    (20_000, 35),
    (30_000, 39),
    (40_000, 43),
    (50_000, 45),
    (60_000, 49),
    (80_000, 53),
    (100_000, 55),
    (150_000, 59),
    (200_000, 61),
    (250_000, 65),
    (300_000, 69),
]

SEATS_MUNICIPAL_DEFAULT = 35   # commune de 20 000 à 29 999 habitants
SEATS_COMMUNITY_DEFAULT = 7


def municipal_seats_for_population(population: int) -> int:
    """Nombre de conseillers municipaux selon la population légale."""
    if population < 0:
        raise ValueError(f"Population négative : {population}")
    seats = CGCT_SEATS_SCALE[0][1]
    for floor_pop, n in CGCT_SEATS_SCALE:
        if population >= floor_pop:
            seats = n
    return seats


def majority_bonus_seats(total_seats: int) -> int:
    """Prime majoritaire : la moitié des sièges, arrondie à l'entier supérieur."""
    return math.ceil(total_seats * PRIME_MAJORITAIRE_FRACTION)


# ---------------------------------------------------------------------------
# Configuration de la commune
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CommuneConfig:
    """Paramètres de la commune et de l'élection."""
    name: str = ""
    code: str = ""
    population: int = 0
    seats_municipal: int = SEATS_MUNICIPAL_DEFAULT
    seats_community: int = SEATS_COMMUNITY_DEFAULT
    threshold: float = SEUIL_PROPORTIONNELLE
    date_round1: Optional[str] = None
    date_round2: Optional[str] = None

    # Clés acceptées dans l'onglet Config (clé → attribut)
    _KEYS = {
        "COMMUNE_NAME": "name",
        "COMMUNE_CODE": "code",
        "COMMUNE_POP": "population",
        "SEATS_MUNICIPAL_TOTAL": "seats_municipal",
        "SEATS_COMMUNITY_TOTAL": "seats_community",
        "SEATS_THRESHOLD_PCT": "threshold",
        "ELECTION_DATE_T1": "date_round1",
        "ELECTION_DATE_T2": "date_round2",
    }

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "CommuneConfig":
        """Construit la configuration depuis un dict clé → valeur.

        Le seuil est saisi en pourcentage (ex. 5.0) et converti en fraction.
        Les clés inconnues sont ignorées.
        """
        from municipales.data.coercion import to_int, to_number

        kwargs: Dict[str, Any] = {}
        for key, raw in values.items():
            attr = cls._KEYS.get(str(key).strip().upper())
            if attr is None or raw is None or str(raw).strip() == "":
                continue
            if attr in ("population", "seats_municipal", "seats_community"):
                kwargs[attr] = to_int(raw)
            elif attr == "threshold":
                kwargs[attr] = to_number(raw, SEUIL_PROPORTIONNELLE * 100) / 100.0
            else:
                kwargs[attr] = str(raw).strip()

        config = cls(**kwargs)
        config.warn_inconsistent_seats()
        return config

    @classmethod
    def from_rows(cls, rows: Iterable[Mapping[str, Any]]) -> "CommuneConfig":
        """Construit la configuration depuis les lignes clé/valeur de l'onglet Config."""
        values: Dict[str, Any] = {}
        for row in rows:
            key = row.get("key", row.get("cle", row.get("Cle")))
            if key is None:
                continue
            values[str(key)] = row.get("value", row.get("valeur", row.get("Valeur")))
        return cls.from_mapping(values)

    def warn_inconsistent_seats(self):
        """Émet un avertissement si l'effectif ne correspond pas au barème."""
        if self.population <= 0:
            return
        expected = municipal_seats_for_population(self.population)
        if expected != self.seats_municipal:
            warnings.warn(
                f"Effectif du conseil municipal ({self.seats_municipal}) différent "
                f"du barème CGCT pour {self.population} habitants ({expected}).",
                UserWarning,
                stacklevel=3,
            )
