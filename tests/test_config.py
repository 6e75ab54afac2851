"""
Tests for configuration constants, plate rounding and logger setup.
Run: pytest tests/ -v
"""
import dataclasses
import sys

import pytest
from loguru import logger


class TestRoundToPlate:

    @pytest.mark.parametrize("weight,expected", [
        (0.25, 0.5),
        (61.35, 61.5),
        (101.2, 101.0),
        (116.3, 116.5),
        (80.0, 80.0),
    ])
    def test_half_up(self, weight, expected):
        from controlfit.config import round_to_plate
        assert round_to_plate(weight) == expected

    def test_custom_increment(self):
        from controlfit.config import round_to_plate
        assert round_to_plate(101.2, 2.5) == 100.0
        assert round_to_plate(101.3, 2.5) == 102.5


class TestImmutableConfig:
    """Shared tables cannot be mutated by callers."""

    def test_experience_levels_read_only(self):
        from controlfit.config import EXPERIENCE_LEVELS, ExperienceLevel
        with pytest.raises(TypeError):
            EXPERIENCE_LEVELS["elite"] = ExperienceLevel("elite", 0.001, 0.002)

    def test_experience_level_frozen(self):
        from controlfit.config import get_experience_level
        with pytest.raises(dataclasses.FrozenInstanceError):
            get_experience_level("beginner").rate = 0.5

    def test_composite_weights_frozen(self):
        from controlfit.config import DEFAULT_COMPOSITE_WEIGHTS
        with pytest.raises(dataclasses.FrozenInstanceError):
            DEFAULT_COMPOSITE_WEIGHTS.circumference = 1.0

    def test_level_rates(self):
        from controlfit.config import get_experience_level
        assert get_experience_level("beginner").rate == 0.025
        assert get_experience_level("intermediate").max_weekly_increase == 0.03
        assert get_experience_level("advanced").rate == 0.005
        assert get_experience_level("elite") is None

    def test_percentage_table_monotonic(self):
        from controlfit.config import PERCENTAGE_TABLE
        pcts = [p for p, _ in PERCENTAGE_TABLE]
        reps = [r for _, r in PERCENTAGE_TABLE]
        assert pcts == sorted(pcts, reverse=True)
        assert reps == sorted(reps)


class TestLogger:

    def test_file_sink(self, tmp_path):
        from controlfit.logger import setup_logger
        log_file = tmp_path / "logs" / "controlfit.log"
        setup_logger(level="DEBUG", log_file=str(log_file))
        logger.info("sink check")
        logger.remove()
        logger.add(sys.stderr)
        assert "sink check" in log_file.read_text()
