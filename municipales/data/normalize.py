"""Résolution des champs : ligne brute du classeur → ligne canonique typée.

Les onglets ont connu plusieurs versions d'en-têtes ("inscrits", "Inscrits",
"nbInscrits", "exprimés"...). Chaque concept est associé à une liste ordonnée
de clés candidates ; la première clé présente et non vide l'emporte.
Cette étape est exécutée une fois à l'ingestion, jamais dans le moteur.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from municipales.config import FIRST_HOUR, LAST_HOUR
from municipales.data.coercion import normalize_station_id, to_bool, to_int
from municipales.data.schemas import CandidateList, PollingStation, ResultRow, TurnoutRow
from municipales.engine.state import ElectionRoundState

logger = logging.getLogger(__name__)


FIELD_ALIASES: Dict[str, List[str]] = {
    "station_id": ["bureauId", "bureau_id", "BureauID", "bureau", "Bureau", "id", "ID"],
    "station_name": ["nom", "Nom", "name", "nomBureau"],
    "address": ["adresse", "Adresse", "address"],
    "registered": ["inscrits", "Inscrits", "nbInscrits", "registered"],
    "active": ["actif", "Actif", "active"],
    "voters": ["votants", "Votants", "nbVotants", "voters"],
    "blanks": ["blancs", "Blancs", "nbBlancs", "blanks"],
    "nulls": ["nuls", "Nuls", "nbNuls", "nulls"],
    "expressed": ["exprimes", "exprimés", "Exprimes", "Exprimés", "nbExprimes", "expressed"],
    "votes": ["voix", "Voix", "votes"],
    "validated_by": ["validePar", "ValidePar", "valide_par"],
    "list_id": ["listeId", "ListeID", "liste_id", "id", "candidatId", "code"],
    "list_name": ["nomListe", "NomListe", "nom", "name", "liste"],
    "lead_last_name": ["teteListeNom", "TeteListeNom", "nomTete"],
    "lead_first_name": ["teteListePrenom", "TeteListePrenom", "prenomTete"],
    "average_age": ["ageMoyen", "AgeMoyen", "age_moyen", "averageAge", "age"],
    "active_round1": ["actifT1", "ActifT1", "actif_t1"],
    "active_round2": ["actifT2", "ActifT2", "actif_t2"],
    "color": ["couleur", "Couleur", "color"],
    "order": ["ordre", "Ordre", "order"],
    "current_round": ["tourActuel", "TourActuel", "tour"],
    "round1_locked": ["tour1Verrouille", "Tour1Verrouille"],
    "round2_locked": ["tour2Verrouille", "Tour2Verrouille"],
    "second_round_enabled": ["secondTourEnabled", "SecondTourEnabled"],
    "qualified": ["candidatsQualifies", "qualifies", "CandidatsQualifies"],
}

# votants09h, Votants_10h, votants 11H...
_HOUR_KEY = re.compile(r"^votants[\s_]*(\d{1,2})\s*h$", re.IGNORECASE)

# Colonnes de voix aplaties : voix_L1, L1_Voix, L1Voix
_FLAT_VOTES_PATTERNS = [
    re.compile(r"^voix[_\s]*(L\d+)$", re.IGNORECASE),
    re.compile(r"^(L\d+)[_\s]*voix$", re.IGNORECASE),
]


def _strip_accents(s: str) -> str:
    return "".join(
        c for c in unicodedata.normalize("NFKD", s) if not unicodedata.combining(c)
    )


def resolve_field(row: Mapping[str, Any], concept: str, default: Any = None) -> Any:
    """Renvoie la valeur du premier alias présent et non vide pour `concept`.

    Les clés exactes sont essayées dans l'ordre ; à défaut, une comparaison
    sans casse ni accents est tentée.
    """
    aliases = FIELD_ALIASES[concept]
    for key in aliases:
        value = row.get(key)
        if value is not None and not (isinstance(value, str) and value.strip() == ""):
            return value

    folded = {_strip_accents(str(k)).lower(): v for k, v in row.items()}
    for key in aliases:
        value = folded.get(_strip_accents(key).lower())
        if value is not None and not (isinstance(value, str) and value.strip() == ""):
            return value
    return default


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def extract_hourly(row: Mapping[str, Any]) -> Dict[str, int]:
    """Extrait les cumuls horaires saisis : {"09h": n, ...}, heures vides exclues."""
    hourly: Dict[str, int] = {}
    for key, value in row.items():
        m = _HOUR_KEY.match(str(key).strip())
        if not m:
            continue
        if value is None or (isinstance(value, str) and value.strip() == ""):
            continue
        hour = int(m.group(1))
        if not FIRST_HOUR <= hour <= LAST_HOUR:
            logger.debug("Heure hors plage ignorée : %s", key)
            continue
        hourly[f"{hour:02d}h"] = to_int(value)
    return hourly


def extract_votes(row: Mapping[str, Any], list_ids: Optional[Sequence[str]] = None) -> Dict[str, int]:
    """Extrait les voix par liste, depuis un dict imbriqué ou des colonnes aplaties."""
    votes: Dict[str, int] = {}
    nested = resolve_field(row, "votes")
    if isinstance(nested, Mapping):
        for key, value in nested.items():
            votes[str(key).strip()] = to_int(value)

    for key, value in row.items():
        for pattern in _FLAT_VOTES_PATTERNS:
            m = pattern.match(str(key).strip())
            if m:
                votes.setdefault(m.group(1).upper(), to_int(value))
                break

    if list_ids is not None:
        for list_id in list_ids:
            if list_id not in votes and list_id in row:
                votes[list_id] = to_int(row[list_id])
    return votes


# ---------------------------------------------------------------------------
# Lignes canoniques
# ---------------------------------------------------------------------------

def normalize_station(row: Mapping[str, Any]) -> PollingStation:
    return PollingStation(
        station_id=_text(resolve_field(row, "station_id", "")),
        name=_text(resolve_field(row, "station_name", "")),
        address=_text(resolve_field(row, "address", "")),
        registered=resolve_field(row, "registered", 0),
        active=resolve_field(row, "active", True),
    )


def normalize_turnout(row: Mapping[str, Any]) -> TurnoutRow:
    return TurnoutRow(
        station_id=_text(resolve_field(row, "station_id", "")),
        registered=resolve_field(row, "registered", 0),
        hourly=extract_hourly(row),
    )


def normalize_result(
    row: Mapping[str, Any],
    list_ids: Optional[Sequence[str]] = None,
) -> ResultRow:
    validated_by = resolve_field(row, "validated_by")
    return ResultRow(
        station_id=_text(resolve_field(row, "station_id", "")),
        registered=resolve_field(row, "registered", 0),
        voters=resolve_field(row, "voters", 0),
        blanks=resolve_field(row, "blanks", 0),
        nulls=resolve_field(row, "nulls", 0),
        expressed=resolve_field(row, "expressed", 0),
        votes=extract_votes(row, list_ids),
        validated_by=_text(validated_by) or None,
    )


def normalize_candidate(row: Mapping[str, Any]) -> CandidateList:
    list_id = _text(resolve_field(row, "list_id", ""))
    return CandidateList(
        list_id=list_id,
        name=_text(resolve_field(row, "list_name", list_id)),
        lead_last_name=_text(resolve_field(row, "lead_last_name", "")),
        lead_first_name=_text(resolve_field(row, "lead_first_name", "")),
        average_age=resolve_field(row, "average_age", 0.0),
        active_round1=resolve_field(row, "active_round1", True),
        active_round2=resolve_field(row, "active_round2", False),
        color=_text(resolve_field(row, "color", "")),
        order=resolve_field(row, "order", 0),
    )


def normalize_state(row: Mapping[str, Any]) -> ElectionRoundState:
    """État de l'élection depuis la ligne de l'onglet ElectionsState."""
    raw_qualified = resolve_field(row, "qualified", "")
    if isinstance(raw_qualified, str):
        qualified = tuple(q.strip() for q in raw_qualified.split(",") if q.strip())
    else:
        qualified = tuple(str(q).strip() for q in raw_qualified or () if str(q).strip())

    current_round = to_int(resolve_field(row, "current_round", 1), 1)
    return ElectionRoundState(
        current_round=2 if current_round == 2 else 1,
        round1_locked=to_bool(resolve_field(row, "round1_locked", False)),
        round2_locked=to_bool(resolve_field(row, "round2_locked", False)),
        second_round_enabled=to_bool(resolve_field(row, "second_round_enabled", False)),
        qualified=qualified,
    )


def match_stations(
    rows: Iterable[Any],
    stations: Iterable[PollingStation],
) -> Dict[str, Any]:
    """Associe chaque bureau à sa ligne (rapprochement par numéro de bureau).

    Returns:
        dict station_id (du bureau) → ligne, bureaux sans ligne absents.
    """
    by_key: Dict[str, Any] = {}
    for row in rows:
        key = normalize_station_id(row.station_id)
        if key in by_key:
            logger.warning("Ligne en double pour le bureau %s, la dernière est conservée", row.station_id)
        by_key[key] = row

    matched = {}
    for station in stations:
        row = by_key.get(normalize_station_id(station.station_id))
        if row is not None:
            matched[station.station_id] = row
    return matched
