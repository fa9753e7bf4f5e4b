import math
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional

import pandas as pd

from .models import ProfileSummary, UserRecord, WorkoutRecord

RECENT_WORKOUTS = 10
BCAL_PER_LEVEL = 10000


def _workout_day(moment: datetime) -> date:
    if moment.tzinfo is not None:
        moment = moment.astimezone()
    return moment.date()


def workout_streak(history: List[WorkoutRecord], today: Optional[date] = None) -> int:
    """
    Number of consecutive calendar days with at least one workout, counted
    back from the most recent one. The streak is broken (0) unless the most
    recent workout was today or yesterday.
    """
    if not history:
        return 0
    today = today or date.today()

    days = sorted({_workout_day(record.date) for record in history}, reverse=True)
    if days[0] not in (today, today - timedelta(days=1)):
        return 0

    streak = 0
    expected = days[0]
    for day in days:
        if day != expected:
            break
        streak += 1
        expected -= timedelta(days=1)
    return streak


def fitness_level(total_bcal: int) -> int:
    return math.floor(total_bcal / BCAL_PER_LEVEL) + 1


def processing_speed_averages(
    history: List[WorkoutRecord],
) -> Dict[str, Optional[float]]:
    """Mean step timings over the last ten workouts that recorded them."""
    columns = ["step1_avg_seconds", "step2_avg_seconds"]
    frame = pd.DataFrame(
        [record.model_dump() for record in history[-RECENT_WORKOUTS:]],
        columns=columns,
    )
    averages: Dict[str, Optional[float]] = {}
    for column in columns:
        mean = pd.to_numeric(frame[column], errors="coerce").mean()
        averages[column] = None if pd.isna(mean) else float(mean)
    return averages


def direct_translation_error_rate(history: List[WorkoutRecord]) -> float:
    recent = history[-RECENT_WORKOUTS:]
    if not recent:
        return 0.0
    flagged = sum(1 for record in recent if record.direct_translation_error)
    return flagged / len(recent)


def build_profile(user: UserRecord, today: Optional[date] = None) -> ProfileSummary:
    speed = processing_speed_averages(user.workout_history)
    return ProfileSummary(
        display_name=user.display_name or user.email,
        brain_fat_percentage=round(user.brain_fat_percentage, 1),
        brain_fitness_level=fitness_level(user.total_bcal_burned),
        total_bcal_burned=user.total_bcal_burned,
        total_workouts=user.total_workouts,
        last_workout_bcal=user.last_workout_bcal,
        workout_streak=workout_streak(user.workout_history, today),
        step1_avg_seconds=speed["step1_avg_seconds"],
        step2_avg_seconds=speed["step2_avg_seconds"],
        direct_translation_error_rate=direct_translation_error_rate(
            user.workout_history
        ),
    )
