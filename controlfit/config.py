"""
ControlFit Metrics — Configuration

Named constants for the three calculators: body-fat blending weights,
classification bands, 1RM formula tiers, the standard percentage table and
experience-level progression rates.

Everything here is read-only. Callers that want different values build their
own struct (e.g. CompositeWeights(...)) and pass it as a parameter.
"""
import math
import os
from dataclasses import dataclass
from types import MappingProxyType

# ── Logging ──────────────────────────────────────────────────────────
LOG_LEVEL = os.environ.get("CONTROLFIT_LOG_LEVEL", "INFO")
LOG_FILE = os.environ.get("CONTROLFIT_LOG_FILE") or None

# ── Plates ───────────────────────────────────────────────────────────
PLATE_INCREMENT = 0.5  # smallest loadable jump in kg (0.25 kg per side)


def round_to_plate(weight: float, increment: float = PLATE_INCREMENT) -> float:
    """Round weight half-up to the nearest plate increment (0.5 kg by default)."""
    return math.floor(weight / increment + 0.5) * increment


# ═════════════════════════════════════════════════════════════════════
# BODY COMPOSITION
# ═════════════════════════════════════════════════════════════════════

SEXES = ("male", "female")

# Raw method outputs outside this range are discarded as implausible
SANE_BODY_FAT_RANGE = (2.0, 50.0)

# Navy circumference regression, metric form (cm, log10)
NAVY_COEFFICIENTS = MappingProxyType({
    "male":   {"c0": 1.0324, "c_girth": 0.19077, "c_height": 0.15456},
    "female": {"c0": 1.29579, "c_girth": 0.35004, "c_height": 0.22100},
})

# Jackson-Pollock 3-site body density
JACKSON_POLLOCK_COEFFICIENTS = MappingProxyType({
    "male":   {"c0": 1.10938, "c1": 0.0008267, "c2": 0.0000016, "c_age": 0.0002574},
    "female": {"c0": 1.0994921, "c1": 0.0009929, "c2": 0.0000023, "c_age": 0.0001392},
})


@dataclass(frozen=True)
class CompositeWeights:
    """Blend weights and reliability points for the composite body-fat estimate."""
    circumference: float = 0.7
    bmi: float = 0.3
    points_per_method: int = 30
    circumference_bonus: int = 20  # waist + neck + height all present
    hip_bonus: int = 10
    max_reliability: int = 100


DEFAULT_COMPOSITE_WEIGHTS = CompositeWeights()

# Lower bound (inclusive) of each band; below "athlete" is essential fat
BODY_FAT_BANDS = MappingProxyType({
    "male":   (("athlete", 6.0), ("fitness", 14.0), ("average", 18.0), ("obese", 25.0)),
    "female": (("athlete", 14.0), ("fitness", 21.0), ("average", 25.0), ("obese", 32.0)),
})
HEALTHY_CATEGORIES = frozenset({"athlete", "fitness", "average"})

CATEGORY_DESCRIPTIONS = MappingProxyType({
    "essential": "Grasa esencial - Mínimo necesario para funciones vitales",
    "athlete": "Atlético - Nivel muy bajo de grasa corporal",
    "fitness": "Fitness - Nivel saludable y atlético",
    "average": "Promedio - Nivel saludable normal",
    "obese": "Obesidad - Nivel alto que puede afectar la salud",
})


# ═════════════════════════════════════════════════════════════════════
# STRENGTH (1RM)
# ═════════════════════════════════════════════════════════════════════

LOW_PRECISION_REPS = 20  # estimates above this rep count are less reliable
MAX_E1RM_MULTIPLIER = 3  # candidates above weight × 3 are discarded

# (max reps in tier, ((formula, blend weight), ...))
REP_RANGE_TIERS = (
    (3, (("epley", 0.4), ("brzycki", 0.3), ("lander", 0.3))),
    (6, (("brzycki", 0.3), ("epley", 0.25), ("lander", 0.25), ("wathen", 0.2))),
    (12, (("wathen", 0.3), ("mcglothin", 0.25), ("epley", 0.2), ("oconner", 0.25))),
    (None, (("wathen", 0.4), ("oconner", 0.3), ("mcglothin", 0.3))),
)

# Standard %1RM table: percentages and rep estimates are co-indexed
PERCENTAGE_TABLE = (
    (100, 1), (95, 2), (90, 4), (85, 6), (80, 8), (75, 10),
    (70, 11), (65, 15), (60, 20), (55, 25), (50, 30),
)

# (min percentage, label), first match wins
INTENSITY_BANDS = (
    (95, "Máxima intensidad"),
    (85, "Alta intensidad - Fuerza"),
    (70, "Intensidad moderada-alta - Hipertrofia/Fuerza"),
    (60, "Intensidad moderada - Hipertrofia"),
    (50, "Baja intensidad - Resistencia"),
)
WARMUP_INTENSITY = "Muy baja intensidad - Calentamiento"

# Percentage gain (exclusive lower bound) → trend
TREND_THRESHOLDS = (
    (15.0, "excellent"),
    (5.0, "good"),
    (0.0, "slow"),
)

TREND_RECOMMENDATIONS = MappingProxyType({
    "plateau": (
        "Considera un período de descarga (deload week)",
        "Varía los rangos de repeticiones",
        "Añade ejercicios accesorios",
        "Revisa tu técnica con un entrenador",
    ),
    "slow": (
        "Asegúrate de comer suficientes proteínas",
        "Aumenta la frecuencia de entrenamiento",
        "Considera periodización",
    ),
    "good": (
        "Mantén la consistencia actual",
        "Monitorea la fatiga para evitar sobreentrenamiento",
    ),
    "excellent": (
        "¡Excelente trabajo!",
        "Considera establecer nuevas metas",
        "Mantén el enfoque en la técnica",
    ),
    "insufficient_data": (
        "Continúa registrando tus entrenamientos",
    ),
})


# ═════════════════════════════════════════════════════════════════════
# PROGRESSIVE OVERLOAD
# ═════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ExperienceLevel:
    name: str
    rate: float                 # base load increase per progression step
    max_weekly_increase: float  # hard cap on any single load increase


EXPERIENCE_LEVELS = MappingProxyType({
    "beginner": ExperienceLevel("beginner", rate=0.025, max_weekly_increase=0.05),
    "intermediate": ExperienceLevel("intermediate", rate=0.015, max_weekly_increase=0.03),
    "advanced": ExperienceLevel("advanced", rate=0.005, max_weekly_increase=0.01),
})
DEFAULT_EXPERIENCE_LEVEL = "intermediate"

# ── Session history window ───────────────────────────────────────────
FATIGUE_WINDOW_SESSIONS = 5
FATIGUE_RPE_THRESHOLD = 8
FATIGUE_DURATION_MIN = 120
FATIGUE_COMPLETION_RATE = 0.8
DEFAULT_SESSION_RPE = 5  # assumed for exercises logged without RPE

CONSISTENCY_MIN_SESSIONS = 4
CONSISTENCY_WINDOW_DAYS = 28
CONSISTENCY_FREE_WEEKS = 2  # weeks that earn no bonus
CONSISTENCY_BONUS_PER_WEEK = 0.1
CONSISTENCY_MAX = 1.2

TECHNIQUE_DEFAULT = 0.8
TECHNIQUE_STRAINED = 0.6   # RPE > 8 and reps under the target minimum
TECHNIQUE_BREAKDOWN = 0.5  # RPE > 9 and reps under 80% of the target maximum
TECHNIQUE_STRAIN_RPE = 8
TECHNIQUE_BREAKDOWN_RPE = 9
TECHNIQUE_BREAKDOWN_REPS_FRACTION = 0.8
TECHNIQUE_THRESHOLD = 0.7
FATIGUE_THRESHOLD = 0.6

# ── Branch multipliers ───────────────────────────────────────────────
TECHNIQUE_WEIGHT_FACTOR = 0.85
TECHNIQUE_EXTRA_REPS = 2
INTENSITY_RATE_FACTOR = 1.5
INTENSITY_EXTRA_REPS = 2
ON_TARGET_RATE_FACTOR = 0.8
RECOVERY_WEIGHT_FACTOR = 0.95

# Week-in-cycle → focus (4-week periodization, week 4 is the deload)
WEEKLY_FOCUS = MappingProxyType({1: "volume", 2: "intensity", 3: "power", 0: "recovery"})


def get_experience_level(name: str) -> ExperienceLevel | None:
    """Look up an experience level. Returns None for unknown names."""
    return EXPERIENCE_LEVELS.get(name)
