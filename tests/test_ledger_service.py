"""Tests for the persistence-backed ledger service."""
from datetime import date, timedelta

import pytest
from sqlalchemy.exc import SQLAlchemyError

from fuel_ledger.models.database_models import DayIntake, DaySummary, SubjectProfile, Workout
from fuel_ledger.models.ledger_types import SubjectSettings
from fuel_ledger.services import ledger_service
from fuel_ledger.services.ledger_service import LedgerService


END = date(2025, 3, 3)


def day(offset: int) -> date:
    return END - timedelta(days=offset)


@pytest.fixture()
def seeded_db(db_session):
    db_session.add(SubjectProfile(subject_id="alice", weight_kg=70, hr_max=190))
    db_session.add_all(
        [
            Workout(subject_id="alice", date=day(2), tss=100, calories=700, if_score=0.82, duration_min=90, sport="ride"),
            Workout(subject_id="alice", date=day(1), tss=140, if_score=0.92, duration_min=75, sport="ride"),
            Workout(subject_id="alice", date=day(10), tss=300, duration_min=200, sport="ride"),
            Workout(subject_id="bob", date=day(1), tss=80, duration_min=60, sport="run"),
        ]
    )
    db_session.add_all(
        [
            DayIntake(subject_id="alice", date=day(2), carbs_g=350, protein_g=130),
            DayIntake(subject_id="alice", date=day(1), carbs_g=0, protein_g=0),
        ]
    )
    db_session.commit()
    return db_session


def summaries(db_session, subject_id="alice"):
    return (
        db_session.query(DaySummary)
        .filter(DaySummary.subject_id == subject_id)
        .order_by(DaySummary.date)
        .all()
    )


class TestSubjectSettings:
    """Test stored subject settings."""

    def test_defaults_when_no_profile(self, db_session):
        """Test defaults are used without a profile row."""
        assert LedgerService(db_session).get_subject_settings("nobody") == SubjectSettings()

    def test_profile_is_validated(self, db_session):
        """Test stored values go through validation."""
        db_session.add(SubjectProfile(subject_id="carol", weight_kg=-3, hr_max=175))
        db_session.commit()

        settings = LedgerService(db_session).get_subject_settings("carol")
        assert settings.weight_kg == 70.0
        assert settings.hr_max == 175

    def test_upsert_ignores_unknown_keys(self, db_session):
        """Test upserts merge known keys only."""
        service = LedgerService(db_session)
        service.upsert_subject_settings("dave", {"weight_kg": 82, "favourite_colour": "red"})
        service.upsert_subject_settings("dave", {"starting_debt_g": 150})

        profile = db_session.query(SubjectProfile).filter(SubjectProfile.subject_id == "dave").one()
        assert profile.weight_kg == 82
        assert profile.starting_debt_g == 150

    def test_list_subject_ids(self, seeded_db):
        """Test subjects come from profiles and workouts."""
        assert LedgerService(seeded_db).list_subject_ids() == ["alice", "bob"]


class TestRecompute:
    """Test recompute persistence and failure reporting."""

    def test_writes_one_summary_per_day(self, seeded_db):
        """Test one summary row per day in the window."""
        result = LedgerService(seeded_db).recompute("alice", days=3, end_date=END)

        assert result.success is True
        assert result.days_processed == 3
        assert result.start_date == day(2)
        assert result.end_date == END

        rows = summaries(seeded_db)
        assert [row.date for row in rows] == [day(2), day(1), day(0)]
        assert rows[1].intake_type == "logged"
        assert rows[1].repletion_g == 0
        assert rows[1].alignment_score is not None
        assert rows[2].intake_type == "estimated"
        for previous, current in zip(rows, rows[1:]):
            assert current.store_start_g == previous.store_end_g

    def test_writes_assessments_back_to_workouts(self, seeded_db):
        """Test assessments are written onto workout rows."""
        LedgerService(seeded_db).recompute("alice", days=3, end_date=END)

        hard = seeded_db.query(Workout).filter(Workout.subject_id == "alice", Workout.date == day(1)).one()
        assert hard.depletion_g == 168
        assert hard.depletion_method == "tss_only"
        assert hard.intensity_bucket == "hard"
        assert hard.intensity_source == "if"

        outside = seeded_db.query(Workout).filter(Workout.date == day(10)).one()
        assert outside.depletion_g is None

    def test_recompute_is_idempotent(self, seeded_db):
        """Test a second recompute leaves the same rows."""
        service = LedgerService(seeded_db)
        service.recompute("alice", days=3, end_date=END)
        first = [(row.date, row.store_end_g, row.insight_why) for row in summaries(seeded_db)]

        service.recompute("alice", days=3, end_date=END)
        second = [(row.date, row.store_end_g, row.insight_why) for row in summaries(seeded_db)]

        assert first == second
        assert seeded_db.query(DaySummary).count() == 3

    def test_subjects_are_isolated(self, seeded_db):
        """Test a recompute touches one subject only."""
        LedgerService(seeded_db).recompute("bob", days=3, end_date=END)

        assert summaries(seeded_db, "alice") == []
        assert [row.total_tss for row in summaries(seeded_db, "bob")] == [0, 80, 0]

    def test_rejects_empty_window(self, seeded_db):
        """Test a zero-day window is a structured failure."""
        result = LedgerService(seeded_db).recompute("alice", days=0, end_date=END)
        assert result.success is False
        assert "days" in result.error

    def test_write_failure_reports_failed_date(self, seeded_db, monkeypatch):
        """Test a failed day write names the date and keeps earlier days."""
        service = LedgerService(seeded_db)
        original_upsert = service._upsert_day_summary

        def failing_upsert(subject_id, ledger_day):
            if ledger_day.date == day(1):
                raise SQLAlchemyError("disk full")
            return original_upsert(subject_id, ledger_day)

        monkeypatch.setattr(service, "_upsert_day_summary", failing_upsert)
        result = service.recompute("alice", days=3, end_date=END)

        assert result.success is False
        assert result.failed_date == day(1)
        assert result.days_processed == 1
        assert "disk full" in result.error
        assert day(1).isoformat() in result.error
        # Days before the failure stay committed
        assert [row.date for row in summaries(seeded_db)] == [day(2)]

    def test_read_failure_is_structured(self, seeded_db, monkeypatch):
        """Test a failed input load is a structured failure."""
        service = LedgerService(seeded_db)

        def broken_loader(*args, **kwargs):
            raise SQLAlchemyError("db down")

        monkeypatch.setattr(service, "load_training_records", broken_loader)
        result = service.recompute("alice", days=3, end_date=END)

        assert result.success is False
        assert result.failed_date is None
        assert "db down" in result.error
        assert summaries(seeded_db) == []

    def test_engine_failure_is_structured(self, seeded_db, monkeypatch):
        """Test an error inside the ledger run is a structured failure."""
        def broken_ledger(*args, **kwargs):
            raise ValueError("cannot convert float NaN to integer")

        monkeypatch.setattr(ledger_service, "build_ledger", broken_ledger)
        result = LedgerService(seeded_db).recompute("alice", days=3, end_date=END)

        assert result.success is False
        assert result.failed_date is None
        assert result.start_date == day(2)
        assert "NaN" in result.error
        assert summaries(seeded_db) == []

    def test_progress_callback(self, seeded_db):
        """Test progress is reported per day."""
        calls = []
        LedgerService(seeded_db).recompute(
            "alice",
            days=3,
            end_date=END,
            on_progress=lambda current, total, message: calls.append(current),
        )
        assert calls == [1, 2, 3]


class TestQueries:
    """Test read-side queries."""

    def test_list_days_returns_most_recent_oldest_first(self, seeded_db):
        """Test the most recent days come back in date order."""
        service = LedgerService(seeded_db)
        service.recompute("alice", days=3, end_date=END)

        assert [row.date for row in service.list_days("alice", days=2)] == [day(1), day(0)]
        assert len(service.list_days("alice")) == 3

    def test_baseline_prompt_uses_first_days(self, db_session):
        """Test the prompt reads the first stored days and honours dismissal."""
        db_session.add_all(
            [
                Workout(subject_id="erin", date=day(2), tss=100),
                Workout(subject_id="erin", date=day(1), tss=80),
                Workout(subject_id="erin", date=day(0), tss=90),
            ]
        )
        db_session.commit()
        service = LedgerService(db_session)
        service.recompute("erin", days=3, end_date=END)

        prompt = service.baseline_prompt("erin")
        assert prompt["show"] is True
        assert "270 TSS" in prompt["reason"]

        service.upsert_subject_settings("erin", {"baseline_prompt_dismissed": True})
        assert service.baseline_prompt("erin")["show"] is False

    def test_what_if_projects_latest_day(self, seeded_db):
        """Test the projection starts from the latest day."""
        service = LedgerService(seeded_db)
        assert service.what_if("alice") is None

        service.recompute("alice", days=3, end_date=END)
        latest = summaries(seeded_db)[-1]
        projection = service.what_if("alice", extra_carbs=100)

        assert projection["date"] == END.isoformat()
        assert projection["store_before_g"] == latest.store_end_g
        assert projection["store_after_g"] == min(latest.store_end_g + 70, latest.supercomp_cap_g)
