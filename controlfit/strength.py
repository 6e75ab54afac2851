"""
ControlFit Metrics — Strength Estimator

One-rep-max estimation from a weight × reps pair:
- Seven regression formulas in a read-only registry
- Composite blend keyed by rep-range tier, with sanity filter
- Standard %1RM table and its inverse lookups
- Longitudinal trend analysis over dated estimates
- DataFrame helpers for logged sets
"""
from types import MappingProxyType
from typing import Iterable, Sequence

import numpy as np
import pandas as pd
from loguru import logger

from controlfit.config import (
    INTENSITY_BANDS,
    LOW_PRECISION_REPS,
    MAX_E1RM_MULTIPLIER,
    PERCENTAGE_TABLE,
    REP_RANGE_TIERS,
    TREND_RECOMMENDATIONS,
    TREND_THRESHOLDS,
    WARMUP_INTENSITY,
    round_to_plate,
)
from controlfit.errors import InvalidInputError, NoValidEstimateError, UnsupportedMethodError
from controlfit.models import (
    MethodResult,
    PercentageRow,
    PerformanceRecord,
    StrengthEstimate,
    TrendResult,
)

COMPOSITE = "composite"


# ═════════════════════════════════════════════════════════════════════
# 1. FORMULA REGISTRY
# ═════════════════════════════════════════════════════════════════════

def _epley(weight: float, reps: float) -> MethodResult:
    return MethodResult(method="epley", value=weight * (1 + reps / 30))


def _brzycki(weight: float, reps: float) -> MethodResult:
    if reps >= 37:
        return MethodResult(method="brzycki", reason="undefined above 36 reps")
    return MethodResult(method="brzycki", value=weight * (36 / (37 - reps)))


def _lander(weight: float, reps: float) -> MethodResult:
    denom = 1.013 - 0.0267123 * reps
    if denom <= 0:
        return MethodResult(method="lander", reason=f"non-positive denominator at {reps} reps")
    return MethodResult(method="lander", value=weight / denom)


def _lombardi(weight: float, reps: float) -> MethodResult:
    return MethodResult(method="lombardi", value=weight * reps ** 0.10)


def _mcglothin(weight: float, reps: float) -> MethodResult:
    denom = 101.3 - 2.67123 * reps
    if denom <= 0:
        return MethodResult(method="mcglothin", reason=f"non-positive denominator at {reps} reps")
    return MethodResult(method="mcglothin", value=(100 * weight) / denom)


def _oconner(weight: float, reps: float) -> MethodResult:
    return MethodResult(method="oconner", value=weight * (1 + 0.025 * reps))


def _wathen(weight: float, reps: float) -> MethodResult:
    return MethodResult(
        method="wathen",
        value=float((100 * weight) / (48.8 + 53.8 * np.exp(-0.075 * reps))),
    )


FORMULAS = MappingProxyType({
    "epley": _epley,
    "brzycki": _brzycki,
    "lander": _lander,
    "lombardi": _lombardi,
    "mcglothin": _mcglothin,
    "oconner": _oconner,
    "wathen": _wathen,
})


def available_methods() -> list[str]:
    return [COMPOSITE, *FORMULAS]


def methods_for_reps(reps: float) -> tuple:
    """((formula, blend weight), ...) for the rep-range tier containing `reps`."""
    for max_reps, methods in REP_RANGE_TIERS:
        if max_reps is None or reps <= max_reps:
            return methods
    return REP_RANGE_TIERS[-1][1]


# ═════════════════════════════════════════════════════════════════════
# 2. 1RM ESTIMATION
# ═════════════════════════════════════════════════════════════════════

def composite_estimate(weight: float, reps: float) -> float:
    """
    Weighted mean of the tier's formulas.

    Candidates that fail or land outside (0, 3 × weight] are dropped;
    NoValidEstimateError if nothing survives.
    """
    total = 0.0
    total_weight = 0.0
    rejected = {}
    for name, blend_weight in methods_for_reps(reps):
        result = FORMULAS[name](weight, reps)
        if not result.ok:
            rejected[name] = result.reason
        elif not 0 < result.value <= weight * MAX_E1RM_MULTIPLIER:
            rejected[name] = f"implausible value {result.value:.1f}"
        else:
            total += result.value * blend_weight
            total_weight += blend_weight

    for name, reason in rejected.items():
        logger.debug(f"1RM formula {name} skipped for {weight}kg x{reps}: {reason}")

    if total_weight == 0:
        raise NoValidEstimateError(rejected)
    return total / total_weight


def _resolve(weight: float, reps: float, method: str) -> tuple[float, str]:
    """Return (1RM, method actually used)."""
    if weight <= 0:
        raise InvalidInputError(f"weight must be positive, got {weight}")
    if reps <= 0:
        raise InvalidInputError(f"reps must be positive, got {reps}")
    if reps == 1:
        return float(weight), method

    if method != COMPOSITE and method not in FORMULAS:
        raise UnsupportedMethodError(method, available_methods())

    if reps > LOW_PRECISION_REPS:
        logger.warning(f"1RM from {reps} reps is less precise (>{LOW_PRECISION_REPS} reps)")

    if method == COMPOSITE:
        return composite_estimate(weight, reps), COMPOSITE

    result = FORMULAS[method](weight, reps)
    if result.ok:
        return result.value, method
    logger.warning(f"1RM formula {method} failed ({result.reason}); using composite")
    return composite_estimate(weight, reps), COMPOSITE


def estimate_one_rep_max(weight: float, reps: float, method: str = COMPOSITE) -> float:
    """
    Estimate 1RM from a set of `reps` at `weight`.

    A single rep is returned unchanged. A named formula that is undefined
    for the input (e.g. Brzycki above 36 reps) falls back to the composite
    blend instead of raising.
    """
    value, _ = _resolve(weight, reps, method)
    return value


def estimate_strength(
    weight: float,
    reps: float,
    method: str = COMPOSITE,
    exercise_id: str | None = None,
    date=None,
) -> StrengthEstimate:
    """1RM, its percentage table and the low-precision flag as one record."""
    one_rm, used = _resolve(weight, reps, method)
    return StrengthEstimate(
        one_rep_max=one_rm,
        table=tuple(percentage_table(one_rm)),
        method=used,
        low_precision=reps > LOW_PRECISION_REPS,
        exercise_id=exercise_id,
        date=date,
    )


# ═════════════════════════════════════════════════════════════════════
# 3. PERCENTAGE TABLE & INVERSE LOOKUPS
# ═════════════════════════════════════════════════════════════════════

_TABLE_FRACTIONS = np.array([pct / 100 for pct, _ in PERCENTAGE_TABLE])  # 1.00 → 0.50
_TABLE_REPS = np.array([reps for _, reps in PERCENTAGE_TABLE], dtype=float)  # 1 → 30
_MIN_FRACTION = _TABLE_FRACTIONS[-1]
_MAX_REPS = _TABLE_REPS[-1]


def intensity_label(percentage: float) -> str:
    for min_pct, label in INTENSITY_BANDS:
        if percentage >= min_pct:
            return label
    return WARMUP_INTENSITY


def percentage_table(one_rep_max: float) -> list[PercentageRow]:
    """Standard 100% → 50% table with plate-rounded weights and rep estimates."""
    if one_rep_max <= 0:
        raise InvalidInputError(f"one_rep_max must be positive, got {one_rep_max}")
    return [
        PercentageRow(
            percentage=pct,
            weight=round_to_plate(one_rep_max * pct / 100),
            estimated_reps=reps,
            intensity=intensity_label(pct),
        )
        for pct, reps in PERCENTAGE_TABLE
    ]


def percentage_table_df(one_rep_max: float) -> pd.DataFrame:
    """percentage_table as a DataFrame (percentage, weight, estimated_reps, intensity)."""
    return pd.DataFrame([row.model_dump() for row in percentage_table(one_rep_max)])


def weight_for_reps(one_rep_max: float, target_reps: float) -> float:
    """
    Working weight for `target_reps`, interpolated on the standard table.

    ≤1 rep is 100%. Past the last row (30 reps @ 50%) the fraction scales
    inversely with reps: fraction = 0.50 × 30 / reps.
    """
    if one_rep_max <= 0:
        raise InvalidInputError(f"one_rep_max must be positive, got {one_rep_max}")
    if target_reps <= 0:
        raise InvalidInputError(f"target_reps must be positive, got {target_reps}")

    if target_reps <= 1:
        fraction = 1.0
    elif target_reps > _MAX_REPS:
        fraction = _MIN_FRACTION * _MAX_REPS / target_reps
    else:
        fraction = float(np.interp(target_reps, _TABLE_REPS, _TABLE_FRACTIONS))
    return round_to_plate(one_rep_max * fraction)


def reps_for_weight(one_rep_max: float, weight: float) -> float:
    """
    Estimated reps at `weight`, interpolated on the standard table.

    Returned unrounded so weight_for_reps can invert it. Above the 1RM → 0;
    below 50% the same inverse scaling as weight_for_reps applies.
    """
    if one_rep_max <= 0:
        raise InvalidInputError(f"one_rep_max must be positive, got {one_rep_max}")
    if weight <= 0:
        raise InvalidInputError(f"weight must be positive, got {weight}")
    if weight > one_rep_max:
        return 0.0

    fraction = weight / one_rep_max
    if fraction < _MIN_FRACTION:
        return float(_MIN_FRACTION * _MAX_REPS / fraction)
    # np.interp needs ascending x
    return float(np.interp(fraction, _TABLE_FRACTIONS[::-1], _TABLE_REPS[::-1]))


# ═════════════════════════════════════════════════════════════════════
# 4. PROGRESSION ANALYSIS
# ═════════════════════════════════════════════════════════════════════

_TREND_MESSAGES = {
    "excellent": "Excelente progresión{where}. Has ganado {gain:.1f}kg ({pct:.1f}%)",
    "good": "Buena progresión{where}. Has ganado {gain:.1f}kg ({pct:.1f}%)",
    "slow": "Progresión lenta{where}. Has ganado {gain:.1f}kg ({pct:.1f}%)",
    "plateau": "Meseta{where}. Considera cambiar la rutina o técnica",
}


def classify_trend(percentage_gain: float) -> str:
    for threshold, trend in TREND_THRESHOLDS:
        if percentage_gain > threshold:
            return trend
    return "plateau"


def analyze_progression(history: Sequence[StrengthEstimate], exercise_name: str = "") -> TrendResult:
    """
    Trend of a lift's 1RM over time.

    Needs ≥2 dated estimates; fewer returns an `insufficient_data` result.
    Estimates are sorted by date before comparing first and last.
    """
    if len(history) < 2:
        return TrendResult(
            trend="insufficient_data",
            message="Necesitas al menos 2 mediciones para analizar progresión",
            recommendations=TREND_RECOMMENDATIONS["insufficient_data"],
        )

    undated = [e for e in history if e.date is None]
    if undated:
        raise InvalidInputError(f"{len(undated)} estimate(s) without a date")

    df = pd.DataFrame([{"date": pd.Timestamp(e.date), "one_rep_max": e.one_rep_max} for e in history])
    df = df.sort_values("date", kind="stable").reset_index(drop=True)
    first, last = df.iloc[0], df.iloc[-1]

    if first["one_rep_max"] <= 0:
        raise InvalidInputError("first 1RM in history must be positive")

    total_gain = last["one_rep_max"] - first["one_rep_max"]
    total_days = (last["date"] - first["date"]).total_seconds() / 86400
    weekly_gain = total_gain / total_days * 7 if total_days > 0 else 0.0
    percentage_gain = total_gain / first["one_rep_max"] * 100

    trend = classify_trend(percentage_gain)
    name = exercise_name or (history[0].exercise_id or "")
    where = f" en {name}" if name else ""
    message = _TREND_MESSAGES[trend].format(where=where, gain=total_gain, pct=percentage_gain)

    logger.debug(f"Trend{where}: {trend} ({percentage_gain:.1f}% over {total_days:.0f} days)")

    return TrendResult(
        trend=trend,
        message=message,
        total_gain=round(float(total_gain), 1),
        percentage_gain=round(float(percentage_gain), 1),
        weekly_gain=round(float(weekly_gain), 2),
        timespan_days=round(total_days),
        recommendations=TREND_RECOMMENDATIONS[trend],
    )


# ═════════════════════════════════════════════════════════════════════
# 5. DATAFRAME HELPERS
# ═════════════════════════════════════════════════════════════════════

def add_e1rm_column(df: pd.DataFrame, method: str = COMPOSITE) -> pd.DataFrame:
    """Add an `e1rm` column (rounded to 0.1 kg) from `weight_kg` and `reps`. Unloaded sets get 0."""
    if df.empty:
        return df
    df = df.copy()
    df["e1rm"] = 0.0
    mask = (df["weight_kg"] > 0) & (df["reps"] > 0)
    if mask.any():
        df.loc[mask, "e1rm"] = df.loc[mask].apply(
            lambda r: round(estimate_one_rep_max(r["weight_kg"], r["reps"], method), 1),
            axis=1,
        )
    return df


def estimates_from_performances(
    records: Iterable[PerformanceRecord],
    method: str = COMPOSITE,
) -> list[StrengthEstimate]:
    """
    Best estimate per exercise per day, from completed, loaded, dated sets.

    Output is sorted by exercise then date, ready for analyze_progression
    once filtered to a single exercise.
    """
    rows = [
        {
            "exercise_id": r.exercise_id,
            "date": pd.Timestamp(r.timestamp).normalize(),
            "weight_kg": r.weight,
            "reps": r.reps,
        }
        for r in records
        if r.completed and r.timestamp is not None and r.weight > 0 and r.reps > 0
    ]
    if not rows:
        return []

    df = add_e1rm_column(pd.DataFrame(rows), method)
    best = (
        df.sort_values("e1rm", ascending=False, kind="stable")
        .drop_duplicates(["exercise_id", "date"])
        .sort_values(["exercise_id", "date"])
    )
    return [
        StrengthEstimate(
            one_rep_max=float(row.e1rm),
            table=tuple(percentage_table(float(row.e1rm))),
            method=method,
            low_precision=bool(row.reps > LOW_PRECISION_REPS),
            exercise_id=row.exercise_id,
            date=row.date.to_pydatetime(),
        )
        for row in best.itertuples(index=False)
    ]
