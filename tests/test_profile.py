from datetime import date, datetime, timedelta

import pytest

from pattogym.models import UserRecord, WorkoutRecord
from pattogym.profile import (
    build_profile,
    direct_translation_error_rate,
    fitness_level,
    processing_speed_averages,
    workout_streak,
)

TODAY = date(2026, 10, 16)


def workout(days_ago=0, burn=100, step1=None, step2=None, direct=None):
    moment = datetime.combine(TODAY - timedelta(days=days_ago), datetime.min.time())
    return WorkoutRecord(
        date=moment + timedelta(hours=9),
        total_bcal_burned=burn,
        step1_avg_seconds=step1,
        step2_avg_seconds=step2,
        direct_translation_error=direct,
    )


def test_streak_empty_history():
    assert workout_streak([], TODAY) == 0


def test_streak_broken_when_last_workout_is_old():
    assert workout_streak([workout(3), workout(4)], TODAY) == 0


def test_streak_counts_consecutive_days():
    history = [workout(2), workout(0), workout(1)]
    assert workout_streak(history, TODAY) == 3


def test_streak_can_start_yesterday():
    assert workout_streak([workout(1), workout(2), workout(4)], TODAY) == 2


def test_streak_counts_each_day_once():
    history = [workout(0), workout(0), workout(1)]
    assert workout_streak(history, TODAY) == 2


@pytest.mark.parametrize(
    "total, level", [(0, 1), (9999, 1), (10000, 2), (25500, 3)]
)
def test_fitness_level(total, level):
    assert fitness_level(total) == level


def test_speed_averages_ignore_missing_timings():
    history = [workout(step1=2.0, step2=4.0), workout(), workout(step1=4.0, step2=6.0)]
    averages = processing_speed_averages(history)
    assert averages["step1_avg_seconds"] == pytest.approx(3.0)
    assert averages["step2_avg_seconds"] == pytest.approx(5.0)


def test_speed_averages_use_last_ten_records():
    history = [workout(step1=100.0)] + [workout(step1=1.0) for _ in range(10)]
    assert processing_speed_averages(history)["step1_avg_seconds"] == pytest.approx(1.0)


def test_speed_averages_without_timings():
    averages = processing_speed_averages([workout(), workout()])
    assert averages == {"step1_avg_seconds": None, "step2_avg_seconds": None}
    assert processing_speed_averages([])["step2_avg_seconds"] is None


def test_direct_translation_error_rate():
    history = [workout(direct=True)] * 3 + [workout(direct=False)] * 6 + [workout()]
    assert direct_translation_error_rate(history) == pytest.approx(0.3)
    assert direct_translation_error_rate([]) == 0.0


def test_build_profile():
    user = UserRecord(
        email="trainee@example.com",
        brain_fat_percentage=33.456,
        total_bcal_burned=12000,
        total_workouts=2,
        last_workout_bcal=150,
        workout_history=[workout(1, step1=2.0, direct=True), workout(0, step1=4.0)],
    )
    profile = build_profile(user, TODAY)
    assert profile.display_name == "trainee@example.com"
    assert profile.brain_fat_percentage == 33.5
    assert profile.brain_fitness_level == 2
    assert profile.workout_streak == 2
    assert profile.step1_avg_seconds == pytest.approx(3.0)
    assert profile.step2_avg_seconds is None
    assert profile.direct_translation_error_rate == pytest.approx(0.5)
