"""Record types exchanged between the calculators and the host application.

Inputs (measurements, performances, sessions, targets) are created by the
caller; results are derived on demand. Every record is frozen.

Units:
- weights in kg, lengths in cm, skinfolds in mm
- RPE on the 1-10 scale
"""

import datetime as dt
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

Sex = Literal["male", "female"]
Goal = Literal["weight_loss", "muscle_gain", "health"]
BodyFatCategory = Literal["essential", "athlete", "fitness", "average", "obese"]
Strategy = Literal["intensity", "volume", "recovery", "maintenance", "technique"]
Trend = Literal["insufficient_data", "plateau", "slow", "good", "excellent"]


class FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


# ═════════════════════════════════════════════════════════════════════
# BODY COMPOSITION
# ═════════════════════════════════════════════════════════════════════

class MeasurementRecord(FrozenModel):
    """Anthropometric snapshot.

    Range checks are the caller's job; only positivity is enforced here.
    """

    weight: float = Field(gt=0)
    height: float = Field(gt=0)

    # Circumferences (cm)
    waist: float | None = Field(default=None, gt=0)
    neck: float | None = Field(default=None, gt=0)
    hip: float | None = Field(default=None, gt=0)
    chest: float | None = Field(default=None, gt=0)
    abdomen: float | None = Field(default=None, gt=0)
    thigh: float | None = Field(default=None, gt=0)

    # Skinfolds (mm) for the women's Jackson-Pollock sites
    tricep: float | None = Field(default=None, gt=0)
    suprailiac: float | None = Field(default=None, gt=0)

    sex: Sex | None = None
    age: int | None = Field(default=None, gt=0)
    timestamp: dt.datetime | None = None

    def missing(self, *fields: str) -> list[str]:
        """Names of the given fields that are not present."""
        return [f for f in fields if getattr(self, f) is None]


class MethodResult(FrozenModel):
    """Outcome of a single formula: a value, or the reason there is none."""

    method: str
    value: float | None = None
    reason: str | None = None
    missing: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return self.value is not None


class BodyCompositionResult(FrozenModel):
    body_fat_percentage: float
    methods: tuple[str, ...]
    individual: dict[str, float]
    reliability: int = Field(ge=0, le=100)


class Classification(FrozenModel):
    category: BodyFatCategory
    description: str
    is_healthy: bool


class Advisory(FrozenModel):
    type: Literal["priority", "nutrition", "training", "maintenance"]
    message: str
    action: str


# ═════════════════════════════════════════════════════════════════════
# STRENGTH
# ═════════════════════════════════════════════════════════════════════

class PerformanceRecord(FrozenModel):
    """One logged exercise: the working weight × reps × sets and how hard it felt."""

    exercise_id: str = ""
    weight: float = Field(ge=0)
    reps: int = Field(ge=0)
    sets: int = Field(default=1, ge=1)
    rpe: float | None = Field(default=None, ge=0, le=10)
    timestamp: dt.datetime | None = None
    completed: bool = True


class PercentageRow(FrozenModel):
    percentage: int
    weight: float
    estimated_reps: int
    intensity: str


class StrengthEstimate(FrozenModel):
    one_rep_max: float
    table: tuple[PercentageRow, ...] = ()
    method: str = "composite"
    low_precision: bool = False
    exercise_id: str | None = None
    date: dt.datetime | dt.date | None = None


class TrendResult(FrozenModel):
    trend: Trend
    message: str
    total_gain: float = 0.0
    percentage_gain: float = 0.0
    weekly_gain: float = 0.0
    timespan_days: int = 0
    recommendations: tuple[str, ...] = ()


# ═════════════════════════════════════════════════════════════════════
# PROGRESSIVE OVERLOAD
# ═════════════════════════════════════════════════════════════════════

class TrainingSession(FrozenModel):
    """One entry of the session history window."""

    date: dt.datetime | dt.date
    duration_min: float = Field(default=0.0, ge=0)
    completion_rate: float = Field(default=1.0, ge=0)
    performances: tuple[PerformanceRecord, ...] = ()

    def average_rpe(self, default: float) -> float | None:
        """Mean RPE over the session's exercises; unlogged RPE counts as `default`."""
        if not self.performances:
            return None
        values = [p.rpe if p.rpe is not None else default for p in self.performances]
        return sum(values) / len(values)


class ProgressionTargets(FrozenModel):
    reps_min: int = Field(ge=1)
    reps_max: int = Field(ge=1)
    sets_min: int = Field(default=1, ge=1)
    sets_max: int = Field(default=5, ge=1)
    rpe: float = Field(default=8, ge=1, le=10)

    @model_validator(mode="after")
    def _check_ranges(self):
        if self.reps_min > self.reps_max:
            raise ValueError(f"reps_min ({self.reps_min}) > reps_max ({self.reps_max})")
        if self.sets_min > self.sets_max:
            raise ValueError(f"sets_min ({self.sets_min}) > sets_max ({self.sets_max})")
        return self


class ProgressionScores(FrozenModel):
    fatigue: float
    consistency: float
    technique: float


class ProgressionDecision(FrozenModel):
    weight: float
    reps: int
    sets: int
    strategy: Strategy
    explanation: str
    scores: ProgressionScores | None = None


class ExercisePlan(FrozenModel):
    exercise_id: str
    last_performance: PerformanceRecord
    targets: ProgressionTargets


class WeeklyPlanEntry(FrozenModel):
    exercise_id: str
    decision: ProgressionDecision
    volume: float


class WeeklyPlan(FrozenModel):
    week: int
    focus: str
    entries: tuple[WeeklyPlanEntry, ...]
    total_volume: float
