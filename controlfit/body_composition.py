"""
ControlFit Metrics — Body Composition Estimator

Body-fat percentage from anthropometric measurements:
- US Navy circumference method (sex-specific log regression)
- BMI-based estimate (Deurenberg)
- Jackson-Pollock 3-site skinfolds (standalone, not blended)
- Composite blend with sanity filter and reliability score
- Classification bands and goal-driven advisories
"""
import numpy as np
from loguru import logger

from controlfit.config import (
    BODY_FAT_BANDS,
    CATEGORY_DESCRIPTIONS,
    DEFAULT_COMPOSITE_WEIGHTS,
    HEALTHY_CATEGORIES,
    JACKSON_POLLOCK_COEFFICIENTS,
    NAVY_COEFFICIENTS,
    SANE_BODY_FAT_RANGE,
    SEXES,
    CompositeWeights,
)
from controlfit.errors import InvalidInputError, MissingMeasurementError, NoValidMethodError
from controlfit.models import (
    Advisory,
    BodyCompositionResult,
    Classification,
    Goal,
    MeasurementRecord,
    MethodResult,
)

NAVY = "us_navy"
BMI = "bmi"
JACKSON_POLLOCK = "jackson_pollock"

NAVY_FIELDS = {
    "male": ("waist", "neck", "height"),
    "female": ("waist", "hip", "neck", "height"),
}
JACKSON_POLLOCK_FIELDS = {
    "male": ("chest", "abdomen", "thigh"),
    "female": ("tricep", "suprailiac", "thigh"),
}


def _check_sex(sex: str) -> None:
    if sex not in SEXES:
        raise InvalidInputError(f"sex must be one of {SEXES}, got {sex!r}")


def _siri(density: float) -> float:
    """Siri equation: body density → fat percentage."""
    return 495 / density - 450


# ═════════════════════════════════════════════════════════════════════
# 1. INDIVIDUAL METHODS
# ═════════════════════════════════════════════════════════════════════

def navy_result(measurements: MeasurementRecord, sex: str) -> MethodResult:
    _check_sex(sex)
    missing = measurements.missing(*NAVY_FIELDS[sex])
    if missing:
        return MethodResult(method=NAVY, reason="missing measurements", missing=tuple(missing))

    m = measurements
    girth = m.waist - m.neck if sex == "male" else m.waist + m.hip - m.neck
    if girth <= 0:
        return MethodResult(method=NAVY, reason=f"girth difference must be positive, got {girth:.1f}")

    c = NAVY_COEFFICIENTS[sex]
    density = c["c0"] - c["c_girth"] * np.log10(girth) + c["c_height"] * np.log10(m.height)
    return MethodResult(method=NAVY, value=float(_siri(density)))


def bmi_result(weight: float, height: float, age: int, sex: str) -> MethodResult:
    _check_sex(sex)
    if age is None:
        return MethodResult(method=BMI, reason="missing measurements", missing=("age",))
    height_m = height / 100
    bmi = weight / (height_m * height_m)
    sex_factor = 1 if sex == "male" else 0
    return MethodResult(method=BMI, value=1.20 * bmi + 0.23 * age - 10.8 * sex_factor - 5.4)


def jackson_pollock_result(measurements: MeasurementRecord, sex: str, age: int) -> MethodResult:
    _check_sex(sex)
    missing = measurements.missing(*JACKSON_POLLOCK_FIELDS[sex])
    if age is None:
        missing.append("age")
    if missing:
        return MethodResult(method=JACKSON_POLLOCK, reason="missing measurements", missing=tuple(missing))

    total = sum(getattr(measurements, f) for f in JACKSON_POLLOCK_FIELDS[sex])
    c = JACKSON_POLLOCK_COEFFICIENTS[sex]
    density = c["c0"] - c["c1"] * total + c["c2"] * total ** 2 - c["c_age"] * age
    return MethodResult(method=JACKSON_POLLOCK, value=_siri(density))


def _unwrap(result: MethodResult) -> float:
    if result.ok:
        return result.value
    if result.missing:
        raise MissingMeasurementError(result.method, result.missing)
    raise InvalidInputError(f"{result.method}: {result.reason}")


def us_navy(measurements: MeasurementRecord, sex: str) -> float:
    """
    US Navy circumference method (metric form).

    Men need waist, neck and height; women also need hip.
    Raises MissingMeasurementError naming the absent fields.
    """
    return _unwrap(navy_result(measurements, sex))


def bmi_estimate(weight: float, height: float, age: int, sex: str) -> float:
    """Deurenberg: 1.20·BMI + 0.23·age − 10.8·(male) − 5.4."""
    return _unwrap(bmi_result(weight, height, age, sex))


def jackson_pollock(measurements: MeasurementRecord, sex: str, age: int) -> float:
    """Jackson-Pollock 3-site: chest/abdomen/thigh (men), tricep/suprailiac/thigh (women)."""
    return _unwrap(jackson_pollock_result(measurements, sex, age))


# ═════════════════════════════════════════════════════════════════════
# 2. COMPOSITE ESTIMATE
# ═════════════════════════════════════════════════════════════════════

def _is_plausible(value: float) -> bool:
    low, high = SANE_BODY_FAT_RANGE
    return low <= value <= high


def reliability_score(
    valid_methods: int,
    measurements: MeasurementRecord,
    weights: CompositeWeights = DEFAULT_COMPOSITE_WEIGHTS,
) -> int:
    """30 points per valid method, +20 for a full circumference set, +10 for hip; capped."""
    score = valid_methods * weights.points_per_method
    if not measurements.missing("waist", "neck", "height"):
        score += weights.circumference_bonus
    if measurements.hip is not None:
        score += weights.hip_bonus
    return min(score, weights.max_reliability)


def estimate_body_fat(
    measurements: MeasurementRecord,
    sex: str | None = None,
    age: int | None = None,
    weights: CompositeWeights = DEFAULT_COMPOSITE_WEIGHTS,
) -> BodyCompositionResult:
    """
    Blend the circumference and BMI methods into one body-fat estimate.

    Each method's raw output must fall inside SANE_BODY_FAT_RANGE to count.
    Both valid → weighted mean (0.7 circumference / 0.3 BMI by default);
    one valid → that value alone; none → NoValidMethodError.

    Args:
        measurements: MeasurementRecord (weight and height always present)
        sex: "male" or "female"; defaults to measurements.sex
        age: years; defaults to measurements.age
        weights: CompositeWeights override for blend weights/reliability points
    """
    sex = sex or measurements.sex
    age = age if age is not None else measurements.age
    missing = [name for name, value in (("sex", sex), ("age", age)) if value is None]
    if missing:
        raise MissingMeasurementError("composite", missing)
    _check_sex(sex)

    candidates = [
        (navy_result(measurements, sex), weights.circumference),
        (bmi_result(measurements.weight, measurements.height, age, sex), weights.bmi),
    ]

    accepted = []
    rejected = {}
    for result, blend_weight in candidates:
        if not result.ok:
            rejected[result.method] = f"missing: {', '.join(result.missing)}" if result.missing else result.reason
        elif not _is_plausible(result.value):
            rejected[result.method] = f"implausible value {result.value:.1f}%"
        else:
            accepted.append((result, blend_weight))

    for method, reason in rejected.items():
        logger.debug(f"Body-fat method {method} skipped: {reason}")

    if not accepted:
        raise NoValidMethodError(rejected)

    total_weight = sum(w for _, w in accepted)
    average = sum(r.value * w for r, w in accepted) / total_weight

    return BodyCompositionResult(
        body_fat_percentage=average,
        methods=tuple(r.method for r, _ in accepted),
        individual={r.method: r.value for r, _ in accepted},
        reliability=reliability_score(len(accepted), measurements, weights),
    )


# ═════════════════════════════════════════════════════════════════════
# 3. CLASSIFICATION & ADVISORIES
# ═════════════════════════════════════════════════════════════════════

def classify(percentage: float, sex: str) -> Classification:
    """Map a body-fat percentage to its sex-specific band."""
    _check_sex(sex)
    category = "essential"
    for name, lower in BODY_FAT_BANDS[sex]:
        if percentage >= lower:
            category = name
    return Classification(
        category=category,
        description=CATEGORY_DESCRIPTIONS[category],
        is_healthy=category in HEALTHY_CATEGORIES,
    )


# (goal or None for any goal, predicate(category, percentage), advisory)
ADVISORY_RULES = (
    (None, lambda cat, pct: cat == "obese", Advisory(
        type="priority",
        message="Considera consultar con un profesional de la salud",
        action="Crear plan de reducción de peso gradual",
    )),
    (None, lambda cat, pct: cat == "essential", Advisory(
        type="priority",
        message="Tu grasa corporal está en el mínimo esencial",
        action="Aumenta la ingesta calórica y evita déficits prolongados",
    )),
    ("weight_loss", lambda cat, pct: pct > 15 and cat not in ("essential", "athlete"), Advisory(
        type="nutrition",
        message="Enfócate en un déficit calórico moderado",
        action="Combina cardio con entrenamiento de resistencia",
    )),
    ("weight_loss", lambda cat, pct: cat in ("essential", "athlete"), Advisory(
        type="maintenance",
        message="Ya estás en un rango muy bajo de grasa corporal",
        action="Prioriza mantener el rendimiento antes que seguir perdiendo peso",
    )),
    ("muscle_gain", lambda cat, pct: cat == "athlete", Advisory(
        type="nutrition",
        message="Considera un ligero superávit calórico",
        action="Prioriza el entrenamiento de fuerza",
    )),
    ("muscle_gain", lambda cat, pct: cat in ("average", "obese"), Advisory(
        type="training",
        message="Apunta a una recomposición corporal",
        action="Mantén calorías de mantenimiento con proteína alta y fuerza progresiva",
    )),
    ("health", lambda cat, pct: cat in HEALTHY_CATEGORIES, Advisory(
        type="maintenance",
        message="Estás en un rango saludable",
        action="Mantén la actividad regular y revisa tus medidas cada mes",
    )),
)


def recommend(percentage: float, sex: str, goal: Goal = "health") -> list[Advisory]:
    """Advisories for a body-fat reading and a stated goal. Empty if no rule applies."""
    category = classify(percentage, sex).category
    return [
        advisory
        for rule_goal, applies, advisory in ADVISORY_RULES
        if (rule_goal is None or rule_goal == goal) and applies(category, percentage)
    ]
