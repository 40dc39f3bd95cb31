"""Tests for per-workout depletion and intensity classification."""
import math
from datetime import date

from fuel_ledger.models.ledger_types import TrainingRecord
from fuel_ledger.services.depletion import (
    assess_workout,
    calculate_day_depletion,
    calculate_workout_depletion,
    determine_intensity_bucket,
    get_intensity_mix,
    get_sport_mix,
)


DAY = date(2025, 3, 1)


def record(**kwargs) -> TrainingRecord:
    return TrainingRecord(date=DAY, **kwargs)


class TestWorkoutDepletion:
    """Test per-session depletion estimates."""

    def test_tss_only_when_calories_missing(self):
        """Test TSS drives depletion when calories are unknown."""
        assert calculate_workout_depletion(record(tss=100)) == (120, "tss_only")

    def test_tss_within_calorie_band_is_kept(self):
        """Test a TSS estimate inside the calorie band is unchanged."""
        assert calculate_workout_depletion(record(tss=100, calories=500)) == (120, "tss_clamped_by_cal")

    def test_tss_clamped_to_calorie_upper_bound(self):
        """Test an inflated TSS is capped at 130% of the calorie estimate."""
        assert calculate_workout_depletion(record(tss=200, calories=500)) == (130, "tss_clamped_by_cal")

    def test_tss_clamped_to_calorie_lower_bound(self):
        """Test a low TSS is raised to 70% of the calorie estimate."""
        assert calculate_workout_depletion(record(tss=20, calories=500)) == (70, "tss_clamped_by_cal")

    def test_no_load_data_depletes_nothing(self):
        """Test a session without load data costs nothing."""
        assert calculate_workout_depletion(record()) == (0, "tss_only")

    def test_non_finite_values_count_as_missing(self):
        """Test NaN and infinite readings are treated as absent."""
        assert calculate_workout_depletion(record(tss=math.nan)) == (0, "tss_only")
        assert calculate_workout_depletion(record(tss=100, calories=math.inf)) == (120, "tss_only")

    def test_day_depletion_sums_sessions(self):
        """Test day depletion is the sum of its sessions."""
        assessments = [assess_workout(record(tss=50)), assess_workout(record(tss=100))]
        assert calculate_day_depletion(assessments) == 180


class TestIntensity:
    """Test intensity bucket classification."""

    def test_intensity_factor_preferred_over_heart_rate(self):
        """Test IF wins when both IF and heart rate exist."""
        assert determine_intensity_bucket(record(if_score=0.7, avg_hr=170)) == ("easy", "if")

    def test_intensity_factor_bands(self):
        """Test IF band edges."""
        assert determine_intensity_bucket(record(if_score=0.74))[0] == "easy"
        assert determine_intensity_bucket(record(if_score=0.75))[0] == "moderate"
        assert determine_intensity_bucket(record(if_score=0.87))[0] == "moderate"
        assert determine_intensity_bucket(record(if_score=0.88))[0] == "hard"

    def test_heart_rate_fallback(self):
        """Test heart-rate ratio bands when IF is missing."""
        assert determine_intensity_bucket(record(avg_hr=120), hr_max=200) == ("easy", "hr")
        assert determine_intensity_bucket(record(avg_hr=170), hr_max=200) == ("moderate", "hr")
        assert determine_intensity_bucket(record(avg_hr=180), hr_max=200) == ("hard", "hr")

    def test_unknown_without_signals(self):
        """Test sessions without IF or heart rate are unknown."""
        assert determine_intensity_bucket(record(tss=80)) == ("unknown", "unknown")

    def test_non_finite_intensity_factor_falls_back_to_heart_rate(self):
        """Test a non-finite IF is skipped in favour of heart rate."""
        assert determine_intensity_bucket(record(if_score=math.nan, avg_hr=180), hr_max=200) == ("hard", "hr")
        assert determine_intensity_bucket(record(if_score=math.inf, avg_hr=math.nan)) == ("unknown", "unknown")

    def test_assessment_carries_record_identity(self):
        """Test assessments keep the record id and date."""
        assessment = assess_workout(record(id=42, tss=100, if_score=0.9))
        assert assessment.record_id == 42
        assert assessment.date == DAY
        assert assessment.depletion_g == 120
        assert assessment.intensity_bucket == "hard"
        assert assessment.intensity_source == "if"


class TestMixes:
    """Test per-day intensity and sport mixes."""

    def test_intensity_mix_counts_every_bucket(self):
        """Test every bucket appears in the mix, even at zero."""
        assessments = [
            assess_workout(record(if_score=0.6)),
            assess_workout(record(if_score=0.9)),
            assess_workout(record(if_score=0.95)),
        ]
        assert get_intensity_mix(assessments) == {"easy": 1, "moderate": 0, "hard": 2, "unknown": 0}

    def test_sport_mix_sums_minutes(self):
        """Test minutes are summed per sport, untagged as other."""
        records = [
            record(sport="ride", duration_min=60),
            record(sport="ride", duration_min=30),
            record(sport="run", duration_min=45),
            record(duration_min=20),
        ]
        assert get_sport_mix(records) == {"ride": 90, "run": 45, "other": 20}

    def test_sport_mix_ignores_non_finite_minutes(self):
        """Test NaN durations add no minutes."""
        assert get_sport_mix([record(sport="run", duration_min=math.nan)]) == {"run": 0}
