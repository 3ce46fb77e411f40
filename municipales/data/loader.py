"""Chargement unifié des tables électorales (classeur, CSV, mémoire).

Point d'entrée unique : chaque onglet est lu comme une liste de dicts,
puis normalisé en lignes canoniques avant d'être passé au moteur.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence, TypeVar

import pandas as pd
from pydantic import ValidationError

from municipales.config import SHEET_NAMES, CommuneConfig, results_table, turnout_table
from municipales.data.coercion import normalize_station_id
from municipales.data.normalize import (
    normalize_candidate,
    normalize_result,
    normalize_state,
    normalize_station,
    normalize_turnout,
)
from municipales.data.schemas import CandidateList, PollingStation, ResultRow, TurnoutRow
from municipales.engine.state import ElectionRoundState

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TableSource(Protocol):
    """Source tabulaire : un onglet → liste de lignes (dicts)."""

    def get_rows(self, table: str) -> List[Dict[str, Any]]:
        ...


class InMemoryTableSource:
    """Tables fournies directement (tests, données déjà récupérées)."""

    def __init__(self, tables: Optional[Mapping[str, Sequence[Mapping[str, Any]]]] = None):
        self.tables = {name: [dict(r) for r in rows] for name, rows in (tables or {}).items()}

    def get_rows(self, table: str) -> List[Dict[str, Any]]:
        return [dict(r) for r in self.tables.get(table, [])]


class CsvTableSource:
    """Un fichier `<onglet>.csv` par table dans un répertoire (export du classeur)."""

    def __init__(self, directory: Path, sep: str = ","):
        self.directory = Path(directory)
        self.sep = sep

    def get_rows(self, table: str) -> List[Dict[str, Any]]:
        path = self.directory / f"{table}.csv"
        if not path.exists():
            logger.info("Table absente : %s", path)
            return []
        # Cellules lues comme texte : la conversion est faite à la normalisation
        df = pd.read_csv(path, sep=self.sep, dtype=str, keep_default_na=False)
        return df.to_dict(orient="records")


class DataLoader:
    """Point d'entrée unifié pour le chargement des tables."""

    def __init__(self, source: TableSource):
        self.source = source

    def _load(self, table: str, normalizer: Callable[[Mapping[str, Any]], T]) -> List[T]:
        rows: List[T] = []
        for i, raw in enumerate(self.source.get_rows(table)):
            try:
                rows.append(normalizer(raw))
            except ValidationError as exc:
                logger.warning("%s ligne %d ignorée : %s", table, i + 1, exc.errors()[0]["msg"])
        logger.info("%s : %d ligne(s) chargée(s)", table, len(rows))
        return rows

    # --- Configuration ---

    def load_config(self) -> CommuneConfig:
        return CommuneConfig.from_rows(self.source.get_rows(SHEET_NAMES["config"]))

    def load_state(self) -> ElectionRoundState:
        """État de l'élection (première ligne de l'onglet, défaut si vide)."""
        rows = self.source.get_rows(SHEET_NAMES["state"])
        if not rows:
            return ElectionRoundState()
        return normalize_state(rows[0])

    def load_stations(self, active_only: bool = True) -> List[PollingStation]:
        stations = self._load(SHEET_NAMES["stations"], normalize_station)
        if active_only:
            stations = [s for s in stations if s.active]
        return stations

    def load_candidates(self) -> List[CandidateList]:
        candidates = self._load(SHEET_NAMES["candidates"], normalize_candidate)
        return sorted(candidates, key=lambda c: c.order)

    # --- Saisies par bureau ---

    def load_turnout(
        self,
        round_number: int,
        stations: Optional[Sequence[PollingStation]] = None,
    ) -> List[TurnoutRow]:
        """Participation d'un tour.

        Si `stations` est fourni, seules les lignes des bureaux connus sont
        gardées, et les inscrits manquants sont repris du registre des bureaux.
        """
        rows = self._load(turnout_table(round_number), normalize_turnout)
        if stations is None:
            return rows

        registry = {normalize_station_id(s.station_id): s for s in stations}
        kept = []
        for row in rows:
            station = registry.get(normalize_station_id(row.station_id))
            if station is None:
                logger.warning("Participation : bureau inconnu %s", row.station_id)
                continue
            if row.registered <= 0:
                row = row.model_copy(update={"registered": station.registered})
            kept.append(row)
        return kept

    def load_results(
        self,
        round_number: int,
        candidates: Optional[Sequence[CandidateList]] = None,
    ) -> List[ResultRow]:
        list_ids = [c.list_id for c in candidates] if candidates else None
        return self._load(
            results_table(round_number),
            lambda raw: normalize_result(raw, list_ids),
        )
