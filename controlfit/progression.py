"""
ControlFit Metrics — Progressive Overload Planner

Decides the next prescribed load for an exercise from:
- the last performance (weight, reps, sets, RPE)
- the target ranges (reps, sets, RPE)
- the lifter's experience level (base rate + weekly cap)
- the recent session history (fatigue, consistency)

Every call is independent; nothing is remembered between calls.
"""
from typing import Sequence

import numpy as np
import pandas as pd
from loguru import logger

from controlfit.config import (
    CONSISTENCY_BONUS_PER_WEEK,
    CONSISTENCY_FREE_WEEKS,
    CONSISTENCY_MAX,
    CONSISTENCY_MIN_SESSIONS,
    CONSISTENCY_WINDOW_DAYS,
    DEFAULT_EXPERIENCE_LEVEL,
    DEFAULT_SESSION_RPE,
    FATIGUE_COMPLETION_RATE,
    FATIGUE_DURATION_MIN,
    FATIGUE_RPE_THRESHOLD,
    FATIGUE_THRESHOLD,
    FATIGUE_WINDOW_SESSIONS,
    INTENSITY_EXTRA_REPS,
    INTENSITY_RATE_FACTOR,
    ON_TARGET_RATE_FACTOR,
    RECOVERY_WEIGHT_FACTOR,
    TECHNIQUE_BREAKDOWN,
    TECHNIQUE_BREAKDOWN_REPS_FRACTION,
    TECHNIQUE_BREAKDOWN_RPE,
    TECHNIQUE_DEFAULT,
    TECHNIQUE_EXTRA_REPS,
    TECHNIQUE_STRAIN_RPE,
    TECHNIQUE_STRAINED,
    TECHNIQUE_THRESHOLD,
    TECHNIQUE_WEIGHT_FACTOR,
    WEEKLY_FOCUS,
    ExperienceLevel,
    get_experience_level,
    round_to_plate,
)
from controlfit.models import (
    ExercisePlan,
    PerformanceRecord,
    ProgressionDecision,
    ProgressionScores,
    ProgressionTargets,
    TrainingSession,
    WeeklyPlan,
    WeeklyPlanEntry,
)


def _experience(level) -> ExperienceLevel:
    if isinstance(level, ExperienceLevel):
        return level
    profile = get_experience_level(level)
    if profile is None:
        logger.warning(f"Unknown experience level {level!r}, using {DEFAULT_EXPERIENCE_LEVEL}")
        profile = get_experience_level(DEFAULT_EXPERIENCE_LEVEL)
    return profile


# ═════════════════════════════════════════════════════════════════════
# 1. HISTORY WINDOW SCORES
# ═════════════════════════════════════════════════════════════════════

def sessions_to_dataframe(sessions: Sequence[TrainingSession]) -> pd.DataFrame:
    """One row per session: date, duration_min, completion_rate, avg_rpe. Sorted by date."""
    if not sessions:
        return pd.DataFrame(columns=["date", "duration_min", "completion_rate", "avg_rpe"])
    rows = []
    for s in sessions:
        avg_rpe = s.average_rpe(DEFAULT_SESSION_RPE)
        rows.append({
            "date": pd.Timestamp(s.date),
            "duration_min": s.duration_min,
            "completion_rate": s.completion_rate,
            "avg_rpe": np.nan if avg_rpe is None else avg_rpe,
        })
    return pd.DataFrame(rows).sort_values("date", kind="stable").reset_index(drop=True)


def assess_fatigue(sessions: Sequence[TrainingSession]) -> float:
    """
    1 − share of tripped fatigue indicators over the last 5 sessions.

    Indicators per session: average RPE > 8, duration > 120 min,
    completion rate < 0.8. No history → 1.0 (no fatigue).
    """
    df = sessions_to_dataframe(sessions)
    if df.empty:
        return 1.0
    recent = df.tail(FATIGUE_WINDOW_SESSIONS)
    tripped = (
        (recent["avg_rpe"] > FATIGUE_RPE_THRESHOLD).sum()
        + (recent["duration_min"] > FATIGUE_DURATION_MIN).sum()
        + (recent["completion_rate"] < FATIGUE_COMPLETION_RATE).sum()
    )
    return float(1 - tripped / (3 * len(recent)))


def assess_consistency(sessions: Sequence[TrainingSession]) -> float:
    """
    Consistency multiplier in [1.0, 1.2].

    Counts distinct ISO weeks among sessions within 28 days of the latest
    one; each week beyond the second adds 0.1. Fewer than 4 sessions → 1.0.
    """
    if len(sessions) < CONSISTENCY_MIN_SESSIONS:
        return 1.0
    df = sessions_to_dataframe(sessions)
    latest = df["date"].max()
    window = df[df["date"] > latest - pd.Timedelta(days=CONSISTENCY_WINDOW_DAYS)]
    iso = window["date"].dt.isocalendar()
    weeks = len(iso[["year", "week"]].drop_duplicates())
    bonus = max(0, weeks - CONSISTENCY_FREE_WEEKS) * CONSISTENCY_BONUS_PER_WEEK
    return round(min(1.0 + bonus, CONSISTENCY_MAX), 2)


def assess_technique(performance: PerformanceRecord, targets: ProgressionTargets) -> float:
    """High effort for too few reps hints at a technique problem. Default 0.8."""
    rpe = performance.rpe
    if rpe is None:
        return TECHNIQUE_DEFAULT
    if rpe > TECHNIQUE_STRAIN_RPE and performance.reps < targets.reps_min:
        return TECHNIQUE_STRAINED
    if rpe > TECHNIQUE_BREAKDOWN_RPE and performance.reps < targets.reps_max * TECHNIQUE_BREAKDOWN_REPS_FRACTION:
        return TECHNIQUE_BREAKDOWN
    return TECHNIQUE_DEFAULT


# ═════════════════════════════════════════════════════════════════════
# 2. STRATEGIES
# ═════════════════════════════════════════════════════════════════════

def _focus_on_technique(last: PerformanceRecord) -> dict:
    weight = round_to_plate(last.weight * TECHNIQUE_WEIGHT_FACTOR)
    reps = last.reps + TECHNIQUE_EXTRA_REPS
    return {
        "weight": weight, "reps": reps, "sets": last.sets,
        "strategy": "technique",
        "explanation": f"Reducir peso a {weight:g}kg para enfocarse en la técnica. Aumentar repeticiones a {reps}.",
    }


def _maintain(last: PerformanceRecord) -> dict:
    return {
        "weight": round_to_plate(last.weight), "reps": last.reps, "sets": last.sets,
        "strategy": "maintenance",
        "explanation": "Mantener la misma carga para permitir recuperación.",
    }


def _increase_intensity(last: PerformanceRecord, targets: ProgressionTargets, rate: float) -> dict:
    if last.reps >= targets.reps_max:
        weight = round_to_plate(last.weight * (1 + rate))
        return {
            "weight": weight, "reps": targets.reps_min, "sets": last.sets,
            "strategy": "intensity",
            "explanation": f"Peso aumentado a {weight:g}kg. Reducir repeticiones a {targets.reps_min}.",
        }
    reps = min(last.reps + INTENSITY_EXTRA_REPS, targets.reps_max)
    return {
        "weight": round_to_plate(last.weight), "reps": reps, "sets": last.sets,
        "strategy": "volume",
        "explanation": f"Aumentar repeticiones a {reps}.",
    }


def _balanced(last: PerformanceRecord, targets: ProgressionTargets, rate: float) -> dict:
    """Reps first, then sets, then weight. Each step stays inside its target range."""
    if last.reps < targets.reps_max:
        reps = last.reps + 1
        return {
            "weight": round_to_plate(last.weight), "reps": reps, "sets": last.sets,
            "strategy": "volume",
            "explanation": f"Aumentar repeticiones a {reps}.",
        }
    if last.sets < targets.sets_max:
        sets = last.sets + 1
        return {
            "weight": round_to_plate(last.weight), "reps": targets.reps_min, "sets": sets,
            "strategy": "volume",
            "explanation": f"Añadir una serie. Total: {sets} series de {targets.reps_min} repeticiones.",
        }
    weight = round_to_plate(last.weight * (1 + rate))
    return {
        "weight": weight, "reps": targets.reps_min, "sets": targets.sets_min,
        "strategy": "intensity",
        "explanation": f"Aumentar peso a {weight:g}kg con {targets.sets_min}x{targets.reps_min}.",
    }


def _maintain_or_decrease(last: PerformanceRecord, targets: ProgressionTargets) -> dict:
    if last.reps > targets.reps_min:
        reps = last.reps - 1
        return {
            "weight": round_to_plate(last.weight), "reps": reps, "sets": last.sets,
            "strategy": "recovery",
            "explanation": f"Reducir repeticiones a {reps} para mejorar la técnica.",
        }
    weight = round_to_plate(last.weight * RECOVERY_WEIGHT_FACTOR)
    return {
        "weight": weight, "reps": last.reps, "sets": last.sets,
        "strategy": "recovery",
        "explanation": f"Reducir peso ligeramente a {weight:g}kg para recuperación.",
    }


def _standard_progression(
    last: PerformanceRecord,
    targets: ProgressionTargets,
    profile: ExperienceLevel,
    consistency: float,
) -> dict:
    """Pick the branch by comparing the last RPE against the target RPE."""
    cap = profile.max_weekly_increase
    rate = min(profile.rate * consistency, cap)
    # Unlogged RPE is read as on target
    rpe = last.rpe if last.rpe is not None else targets.rpe

    if rpe <= targets.rpe - 2:
        return _increase_intensity(last, targets, min(rate * INTENSITY_RATE_FACTOR, cap))
    if rpe <= targets.rpe - 1:
        return _balanced(last, targets, rate)
    if rpe <= targets.rpe:
        return _balanced(last, targets, rate * ON_TARGET_RATE_FACTOR)
    return _maintain_or_decrease(last, targets)


# ═════════════════════════════════════════════════════════════════════
# 3. PUBLIC API
# ═════════════════════════════════════════════════════════════════════

def plan_progression(
    last: PerformanceRecord,
    targets: ProgressionTargets,
    level="intermediate",
    history: Sequence[TrainingSession] = (),
) -> ProgressionDecision:
    """
    Next prescription for one exercise.

    Branches, in order:
    1. technique score < 0.7 → technique (−15% weight, +2 reps)
    2. fatigue score < 0.6 → maintenance (repeat last performance)
    3. otherwise RPE vs target → intensity / volume / recovery

    Args:
        last: Last performance of the exercise
        targets: Rep/set ranges and target RPE
        level: "beginner" | "intermediate" | "advanced", or an ExperienceLevel
        history: Recent sessions (any length; empty is neutral)
    """
    profile = _experience(level)
    scores = ProgressionScores(
        fatigue=assess_fatigue(history),
        consistency=assess_consistency(history),
        technique=assess_technique(last, targets),
    )

    if scores.technique < TECHNIQUE_THRESHOLD:
        fields = _focus_on_technique(last)
    elif scores.fatigue < FATIGUE_THRESHOLD:
        fields = _maintain(last)
    else:
        fields = _standard_progression(last, targets, profile, scores.consistency)

    logger.debug(
        f"{last.exercise_id or 'exercise'}: {fields['strategy']} "
        f"(fatigue={scores.fatigue:.2f}, consistency={scores.consistency:.2f}, technique={scores.technique:.2f})"
    )
    return ProgressionDecision(**fields, scores=scores)


def training_volume(weight: float, reps: int, sets: int) -> float:
    return weight * reps * sets


def weekly_focus(week_number: int) -> str:
    """4-week periodization: volume → intensity → power → recovery."""
    return WEEKLY_FOCUS[week_number % 4]


def weekly_plan(
    exercises: Sequence[ExercisePlan],
    level="intermediate",
    week_number: int = 1,
    history: Sequence[TrainingSession] = (),
) -> WeeklyPlan:
    """One progression decision per exercise, with per-exercise and total volume."""
    entries = []
    for ex in exercises:
        decision = plan_progression(ex.last_performance, ex.targets, level, history)
        entries.append(WeeklyPlanEntry(
            exercise_id=ex.exercise_id,
            decision=decision,
            volume=training_volume(decision.weight, decision.reps, decision.sets),
        ))
    return WeeklyPlan(
        week=week_number,
        focus=weekly_focus(week_number),
        entries=tuple(entries),
        total_volume=sum(e.volume for e in entries),
    )
