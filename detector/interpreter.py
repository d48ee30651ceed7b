"""
Result interpretation: ranked prediction set -> (label, confidence percent).

The rule, kept bit-for-bit with the browser detector:
  1. p0 = entry[0].probability rounded to 2 decimals
  2. winner = entry[0].label if p0 > 0.5 else entry[1].label
  3. confidence = entry[0] prob if winner == "gato" else entry[1] prob
  4. percent = round2(confidence * 100), NaN -> 0, clamped to [0, 100]

Step 3 does not look at which entry won in step 2, so the percentage can
belong to the losing entry. ``parity=False`` uses the winner's own
probability instead.
"""
from __future__ import annotations
import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Sequence

from detector.errors import DataError
from detector.models import DisplayState, PredictionEntry

CAT_LABEL = "gato"
DOG_LABEL = "perro"
WIN_THRESHOLD = 0.5

_CENT = Decimal("0.01")


def round2(value: Optional[float]) -> float:
    """Round to 2 decimals half-up on the exact binary value (JS ``toFixed(2)``).

    None and non-finite values come back as NaN.
    """
    if value is None:
        return math.nan
    try:
        v = float(value)
    except (TypeError, ValueError):
        return math.nan
    if not math.isfinite(v):
        return math.nan
    return float(Decimal(v).quantize(_CENT, rounding=ROUND_HALF_UP))


def clamp_percent(x: float) -> float:
    if math.isnan(x):
        return 0.0
    return max(0.0, min(100.0, x))


def interpret(predictions: Sequence[PredictionEntry], parity: bool = True) -> DisplayState:
    """
    Map a prediction set to the display state.

    Raises:
        DataError: fewer than 2 entries.
    """
    if predictions is None or len(predictions) < 2:
        n = 0 if predictions is None else len(predictions)
        raise DataError(f"prediction set needs at least 2 entries, got {n}")

    first, second = predictions[0], predictions[1]
    p0 = round2(first.probability)
    # NaN > 0.5 is False, so an undefined first probability falls through to entry[1]
    winner = first if p0 > WIN_THRESHOLD else second

    if parity:
        confidence = p0 if winner.label == CAT_LABEL else round2(second.probability)
    else:
        confidence = round2(winner.probability)

    percent = clamp_percent(round2(confidence * 100))
    return DisplayState(label=winner.label, confidence_percent=percent)
