"""Tests for intake resolution and subject settings validation."""
import math
from datetime import date
from types import SimpleNamespace

import pytest

from fuel_ledger.models.ledger_types import IntakeRecord, SubjectSettings
from fuel_ledger.services.ledger_model import resolve_daily_intake


DAY = date(2025, 3, 1)


class TestResolveDailyIntake:
    """Test intake resolution."""

    def test_logged_intake_is_trusted(self):
        """Test logged rows are used as-is."""
        resolution = resolve_daily_intake(IntakeRecord(date=DAY, carbs_g=300, protein_g=120), carb_target=306)
        assert resolution.has_intake is True
        assert resolution.intake_type == "logged"
        assert resolution.confidence == "high"
        assert resolution.carbs_logged == 300
        assert resolution.protein_logged == 120
        assert resolution.estimated_intake_g is None
        assert resolution.repletion_g == pytest.approx(210)

    def test_logged_zero_carbs_is_still_logged(self):
        """Test a logged zero is not treated as missing."""
        resolution = resolve_daily_intake(IntakeRecord(date=DAY, carbs_g=0, protein_g=0), carb_target=210)
        assert resolution.intake_type == "logged"
        assert resolution.has_intake is True
        assert resolution.repletion_g == 0

    def test_negative_and_missing_values_floor_to_zero(self):
        """Test bad logged values floor to zero."""
        resolution = resolve_daily_intake(IntakeRecord(date=DAY, carbs_g=-40, protein_g=None), carb_target=210)
        assert resolution.carbs_logged == 0
        assert resolution.protein_logged == 0
        assert resolution.repletion_g == 0

    def test_missing_intake_is_estimated_from_target(self):
        """Test unlogged days use 60% of the target."""
        resolution = resolve_daily_intake(None, carb_target=210)
        assert resolution.has_intake is False
        assert resolution.intake_type == "estimated"
        assert resolution.confidence == "low"
        assert resolution.carbs_logged == 126
        assert resolution.estimated_intake_g == 126
        assert resolution.repletion_g == pytest.approx(88.2)

    def test_no_intake_and_no_target_repletes_nothing(self):
        """Test no log and no target means no repletion."""
        resolution = resolve_daily_intake(None, carb_target=0)
        assert resolution.intake_type == "none"
        assert resolution.estimated_intake_g is None
        assert resolution.repletion_g == 0


class TestSubjectSettings:
    """Test subject settings validation."""

    def test_defaults(self):
        """Test default settings."""
        settings = SubjectSettings()
        assert settings.weight_kg == 70.0
        assert settings.protein_g_per_kg == 1.8
        assert settings.carb_factor == 1.0
        assert settings.hr_max == 180
        assert settings.glycogen_capacity_override_g is None
        assert settings.starting_debt_g is None
        assert settings.baseline_prompt_dismissed is False

    @pytest.mark.parametrize("bad", [-5, 0, "heavy", math.nan, math.inf])
    def test_invalid_weight_falls_back(self, bad):
        """Test bad weights fall back to the default."""
        assert SubjectSettings(weight_kg=bad).weight_kg == 70.0

    def test_invalid_values_fall_back_with_warning(self, caplog):
        """Test bad values fall back and are logged."""
        settings = SubjectSettings(
            protein_g_per_kg=-1,
            carb_factor="x",
            hr_max=0,
            glycogen_capacity_override_g=-100,
            starting_debt_g="lots",
        )
        assert settings.protein_g_per_kg == 1.8
        assert settings.carb_factor == 1.0
        assert settings.hr_max == 180
        assert settings.glycogen_capacity_override_g is None
        assert settings.starting_debt_g is None
        assert "Invalid hr_max" in caplog.text

    def test_valid_values_kept(self):
        """Test valid values are coerced and kept."""
        settings = SubjectSettings(weight_kg="82.5", hr_max=191.6, starting_debt_g=0)
        assert settings.weight_kg == 82.5
        assert settings.hr_max == 192
        assert settings.starting_debt_g == 0

    def test_reads_from_attributes(self):
        """Test settings load from ORM-like objects."""
        profile = SimpleNamespace(
            weight_kg=None,
            protein_g_per_kg=2.0,
            carb_factor=None,
            hr_max=185,
            glycogen_capacity_override_g=None,
            starting_debt_g=150,
            baseline_prompt_dismissed=None,
        )
        settings = SubjectSettings.model_validate(profile)
        assert settings.weight_kg == 70.0
        assert settings.protein_g_per_kg == 2.0
        assert settings.hr_max == 185
        assert settings.starting_debt_g == 150
        assert settings.baseline_prompt_dismissed is False

    def test_settings_are_frozen(self):
        """Test settings cannot be changed after creation."""
        settings = SubjectSettings()
        with pytest.raises(Exception):
            settings.weight_kg = 90
