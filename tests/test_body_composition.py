"""
Tests for the body composition estimator — formulas, composite blend,
reliability, classification bands and advisories.
Run: pytest tests/ -v
"""
import pytest


def _record(**kwargs):
    from controlfit.models import MeasurementRecord
    defaults = {"weight": 80.0, "height": 180.0, "sex": "male", "age": 30}
    return MeasurementRecord(**{**defaults, **kwargs})


# ═══════════════════════════════════════════════════════════════════════
# INDIVIDUAL METHODS
# ═══════════════════════════════════════════════════════════════════════

class TestUsNavy:
    """Circumference method — metric log10 regression."""

    def test_male_reference_measurements(self):
        from controlfit.body_composition import us_navy
        m = _record(waist=85, neck=38)
        assert us_navy(m, "male") == pytest.approx(16.1, abs=0.1)

    def test_female_uses_hip(self):
        from controlfit.body_composition import us_navy
        m = _record(weight=60, height=165, waist=75, hip=100, neck=33, sex="female")
        assert us_navy(m, "female") == pytest.approx(29.4, abs=0.1)

    def test_male_missing_neck(self):
        from controlfit.body_composition import us_navy
        from controlfit.errors import MissingMeasurementError
        with pytest.raises(MissingMeasurementError) as exc:
            us_navy(_record(waist=85), "male")
        assert exc.value.missing == ["neck"]
        assert exc.value.method == "us_navy"

    def test_female_requires_hip(self):
        from controlfit.body_composition import us_navy
        from controlfit.errors import MissingMeasurementError
        with pytest.raises(MissingMeasurementError) as exc:
            us_navy(_record(waist=75, neck=33, sex="female"), "female")
        assert "hip" in exc.value.missing

    def test_neck_wider_than_waist_is_invalid(self):
        from controlfit.body_composition import us_navy
        from controlfit.errors import InvalidInputError
        with pytest.raises(InvalidInputError):
            us_navy(_record(waist=35, neck=38), "male")

    def test_unknown_sex(self):
        from controlfit.body_composition import us_navy
        from controlfit.errors import InvalidInputError
        with pytest.raises(InvalidInputError):
            us_navy(_record(waist=85, neck=38), "other")


class TestBmiEstimate:

    def test_deurenberg_male(self):
        from controlfit.body_composition import bmi_estimate
        # BMI 24.69 → 1.2·24.69 + 0.23·30 − 10.8 − 5.4
        assert bmi_estimate(80, 180, 30, "male") == pytest.approx(20.33, abs=0.01)

    def test_female_has_no_sex_offset(self):
        from controlfit.body_composition import bmi_estimate
        male = bmi_estimate(80, 180, 30, "male")
        female = bmi_estimate(80, 180, 30, "female")
        assert female - male == pytest.approx(10.8)


class TestJacksonPollock:

    def test_male_three_sites(self):
        from controlfit.body_composition import jackson_pollock
        m = _record(chest=10, abdomen=20, thigh=15)
        assert jackson_pollock(m, "male", 30) == pytest.approx(13.6, abs=0.1)

    def test_female_needs_skinfold_sites(self):
        from controlfit.body_composition import jackson_pollock
        from controlfit.errors import MissingMeasurementError
        m = _record(sex="female", thigh=20)
        with pytest.raises(MissingMeasurementError) as exc:
            jackson_pollock(m, "female", 30)
        assert set(exc.value.missing) == {"tricep", "suprailiac"}


# ═══════════════════════════════════════════════════════════════════════
# COMPOSITE ESTIMATE
# ═══════════════════════════════════════════════════════════════════════

class TestEstimateBodyFat:

    def test_both_methods_blend_70_30(self):
        from controlfit.body_composition import bmi_estimate, estimate_body_fat, us_navy
        m = _record(waist=85, neck=38)
        result = estimate_body_fat(m)
        expected = 0.7 * us_navy(m, "male") + 0.3 * bmi_estimate(80, 180, 30, "male")
        assert result.body_fat_percentage == pytest.approx(expected)
        assert result.methods == ("us_navy", "bmi")
        assert result.individual["us_navy"] == pytest.approx(us_navy(m, "male"))

    def test_bmi_only_reliability_capped_at_30(self):
        from controlfit.body_composition import bmi_estimate, estimate_body_fat
        result = estimate_body_fat(_record())
        assert result.methods == ("bmi",)
        assert result.reliability <= 30
        assert result.body_fat_percentage == pytest.approx(bmi_estimate(80, 180, 30, "male"))

    def test_reliability_full_set(self):
        from controlfit.body_composition import estimate_body_fat
        result = estimate_body_fat(_record(waist=85, neck=38))
        assert result.reliability == 80  # 2 × 30 + 20

    def test_reliability_with_hip(self):
        from controlfit.body_composition import estimate_body_fat
        m = _record(weight=60, height=165, waist=75, hip=100, neck=33, sex="female", age=28)
        result = estimate_body_fat(m)
        assert result.reliability == 90  # 2 × 30 + 20 + 10

    def test_implausible_navy_discarded(self):
        from controlfit.body_composition import estimate_body_fat
        # waist − neck = 2 cm gives a negative percentage
        result = estimate_body_fat(_record(waist=40, neck=38))
        assert result.methods == ("bmi",)
        assert result.reliability == 50  # one method + circumference bonus

    def test_no_valid_method(self):
        from controlfit.body_composition import estimate_body_fat
        from controlfit.errors import NoValidMethodError
        # Very lean young male: BMI estimate falls below 2%
        with pytest.raises(NoValidMethodError) as exc:
            estimate_body_fat(_record(weight=40, height=190, age=18))
        assert "bmi" in exc.value.reasons
        assert "us_navy" in exc.value.reasons

    def test_explicit_sex_and_age_override_record(self):
        from controlfit.body_composition import bmi_estimate, estimate_body_fat
        result = estimate_body_fat(_record(), sex="female", age=40)
        assert result.body_fat_percentage == pytest.approx(bmi_estimate(80, 180, 40, "female"))

    def test_missing_sex(self):
        from controlfit.body_composition import estimate_body_fat
        from controlfit.errors import MissingMeasurementError
        with pytest.raises(MissingMeasurementError) as exc:
            estimate_body_fat(_record(sex=None))
        assert exc.value.missing == ["sex"]

    def test_custom_weights(self):
        from controlfit.body_composition import bmi_estimate, estimate_body_fat, us_navy
        from controlfit.config import CompositeWeights
        m = _record(waist=85, neck=38)
        result = estimate_body_fat(m, weights=CompositeWeights(circumference=0.5, bmi=0.5))
        expected = (us_navy(m, "male") + bmi_estimate(80, 180, 30, "male")) / 2
        assert result.body_fat_percentage == pytest.approx(expected)

    def test_record_rejects_non_positive_values(self):
        from pydantic import ValidationError
        with pytest.raises(ValidationError):
            _record(waist=-85)


# ═══════════════════════════════════════════════════════════════════════
# CLASSIFICATION & ADVISORIES
# ═══════════════════════════════════════════════════════════════════════

class TestClassify:

    @pytest.mark.parametrize("pct,sex,category", [
        (4.0, "male", "essential"),
        (13.5, "male", "athlete"),
        (15.0, "male", "fitness"),
        (18.0, "male", "average"),
        (30.0, "male", "obese"),
        (12.0, "female", "essential"),
        (22.0, "female", "fitness"),
        (31.9, "female", "average"),
        (32.0, "female", "obese"),
    ])
    def test_bands(self, pct, sex, category):
        from controlfit.body_composition import classify
        assert classify(pct, sex).category == category

    def test_healthy_flag(self):
        from controlfit.body_composition import classify
        assert classify(15.0, "male").is_healthy is True
        assert classify(4.0, "male").is_healthy is False
        assert classify(30.0, "male").is_healthy is False

    def test_description_attached(self):
        from controlfit.body_composition import classify
        assert classify(30.0, "male").description.startswith("Obesidad")

    def test_unknown_sex(self):
        from controlfit.body_composition import classify
        from controlfit.errors import InvalidInputError
        with pytest.raises(InvalidInputError):
            classify(20.0, "x")


class TestRecommend:

    def test_obese_gets_priority(self):
        from controlfit.body_composition import recommend
        advice = recommend(30.0, "male", "health")
        assert [a.type for a in advice] == ["priority"]

    def test_weight_loss_above_15(self):
        from controlfit.body_composition import recommend
        advice = recommend(20.0, "male", "weight_loss")
        assert any(a.type == "nutrition" for a in advice)
        assert not any(a.type == "priority" for a in advice)

    def test_weight_loss_in_athlete_band_gets_no_deficit(self):
        from controlfit.body_composition import recommend
        advice = recommend(16.0, "female", "weight_loss")
        assert [a.type for a in advice] == ["maintenance"]

    def test_muscle_gain_athlete_surplus(self):
        from controlfit.body_composition import recommend
        advice = recommend(10.0, "male", "muscle_gain")
        assert len(advice) == 1
        assert "superávit" in advice[0].message

    def test_health_in_healthy_range(self):
        from controlfit.body_composition import recommend
        advice = recommend(20.0, "male", "health")
        assert [a.type for a in advice] == ["maintenance"]

    def test_no_rule_applies(self):
        from controlfit.body_composition import recommend
        # Fitness band, muscle gain: no rule for that pairing
        assert recommend(15.0, "male", "muscle_gain") == []

    def test_deterministic(self):
        from controlfit.body_composition import recommend
        assert recommend(26.0, "female", "weight_loss") == recommend(26.0, "female", "weight_loss")
