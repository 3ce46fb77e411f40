"""Modèles Pydantic des lignes canoniques (après résolution des champs).

Les contraintes métier (inscrits > 0, cohérence des sommes...) ne sont pas
imposées ici : elles sont rapportées par `municipales.engine.validation`,
afin qu'une saisie incohérente reste affichable et corrigeable.
"""

from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from municipales.data.coercion import to_bool, to_int, to_number


class _Row(BaseModel):
    model_config = ConfigDict(frozen=True)


class PollingStation(_Row):
    """Bureau de vote."""
    station_id: str = Field(min_length=1)
    name: str = ""
    address: str = ""
    registered: int = 0
    active: bool = True

    @field_validator("registered", mode="before")
    @classmethod
    def _coerce_int(cls, v):
        return to_int(v)

    @field_validator("active", mode="before")
    @classmethod
    def _coerce_bool(cls, v):
        return to_bool(v, default=True)


class TurnoutRow(_Row):
    """Participation d'un bureau pour un tour : cumul des votants par heure."""
    station_id: str = Field(min_length=1)
    registered: int = 0
    hourly: Dict[str, int] = Field(default_factory=dict)
    # hourly : dict "09h".."20h" → votants cumulés (heures saisies uniquement)

    @field_validator("registered", mode="before")
    @classmethod
    def _coerce_int(cls, v):
        return to_int(v)

    @field_validator("hourly", mode="before")
    @classmethod
    def _coerce_hourly(cls, v):
        return {str(k): to_int(n) for k, n in (v or {}).items()}


class ResultRow(_Row):
    """Résultats d'un bureau pour un tour."""
    station_id: str = Field(min_length=1)
    registered: int = 0
    voters: int = 0
    blanks: int = 0
    nulls: int = 0
    expressed: int = 0
    votes: Dict[str, int] = Field(default_factory=dict)
    # votes : dict identifiant de liste → nombre de voix
    validated_by: Optional[str] = None

    @field_validator("registered", "voters", "blanks", "nulls", "expressed", mode="before")
    @classmethod
    def _coerce_int(cls, v):
        return to_int(v)

    @field_validator("votes", mode="before")
    @classmethod
    def _coerce_votes(cls, v):
        return {str(k): to_int(n) for k, n in (v or {}).items()}

    @property
    def validated(self) -> bool:
        return bool(self.validated_by and self.validated_by.strip())


class CandidateList(_Row):
    """Liste candidate."""
    list_id: str = Field(min_length=1)
    name: str = ""
    lead_last_name: str = ""
    lead_first_name: str = ""
    average_age: float = 0.0
    active_round1: bool = True
    active_round2: bool = False
    color: str = ""
    order: int = 0

    @field_validator("average_age", mode="before")
    @classmethod
    def _coerce_age(cls, v):
        return float(to_number(v, 0.0))

    @field_validator("order", mode="before")
    @classmethod
    def _coerce_order(cls, v):
        return to_int(v)

    @field_validator("active_round1", mode="before")
    @classmethod
    def _coerce_active_t1(cls, v):
        return to_bool(v, default=True)

    @field_validator("active_round2", mode="before")
    @classmethod
    def _coerce_active_t2(cls, v):
        return to_bool(v, default=False)

    @property
    def lead_candidate(self) -> str:
        return " ".join(p for p in (self.lead_first_name, self.lead_last_name) if p).strip()

    def is_active(self, round_number: int) -> bool:
        return self.active_round1 if round_number == 1 else self.active_round2
