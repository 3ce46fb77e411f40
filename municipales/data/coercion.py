"""Conversion tolérante des valeurs saisies à la main dans le classeur.

Les cellules peuvent contenir des nombres, des chaînes avec espaces
(y compris insécables), des virgules décimales ou des résidus de saisie.
Aucune de ces fonctions ne lève d'exception.
"""

from __future__ import annotations

import math
import numbers
import re
from typing import Any

_WHITESPACE = re.compile(r"[\s\u00a0\u202f]")
_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_DIGITS = re.compile(r"(\d+)")

_EMPTY_SENTINELS = {"", "-", ".", "-."}

_TRUE_STRINGS = {"true", "vrai", "oui", "yes", "1", "x"}
_FALSE_STRINGS = {"false", "faux", "non", "no", "0", ""}


def to_number(value: Any, default: float = 0) -> float:
    """Convertit une valeur en nombre fini, ou renvoie `default`.

    Exemples : "1 234,5" → 1234.5 ; " 523 " → 523.0 ; "-" → default.
    """
    if isinstance(value, bool):
        return default
    if isinstance(value, numbers.Real):
        return value if math.isfinite(value) else default
    if not isinstance(value, str):
        return default

    s = _WHITESPACE.sub("", value.strip())
    s = s.replace(",", ".")
    s = _NON_NUMERIC.sub("", s)
    if s in _EMPTY_SENTINELS:
        return default

    try:
        n = float(s)
    except ValueError:
        return default
    return n if math.isfinite(n) else default


def to_int(value: Any, default: int = 0) -> int:
    """Comme `to_number`, tronqué vers zéro."""
    n = to_number(value, None)
    if n is None:
        return default
    return int(n)


def to_bool(value: Any, default: bool = False) -> bool:
    """Interprète les booléens du classeur ("TRUE", "oui", 1, ...)."""
    if isinstance(value, bool):
        return value
    if isinstance(value, numbers.Real):
        return value != 0 if math.isfinite(value) else default
    if isinstance(value, str):
        s = value.strip().lower()
        if s in _TRUE_STRINGS:
            return True
        if s in _FALSE_STRINGS:
            return False
    return default


def normalize_station_id(value: Any) -> str:
    """Clé de rapprochement d'un bureau : "BV1", "BV 1", "1", "bv01" → "1"."""
    if value is None:
        return ""
    s = str(value).strip().upper()
    m = _DIGITS.search(s)
    if m:
        return str(int(m.group(1)))
    return s
