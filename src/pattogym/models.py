from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Document(BaseModel):
    """Base for models stored with camelCase field names."""

    model_config = ConfigDict(populate_by_name=True)

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


# --- Questions ---
class JapaneseOption(Document):
    text: str
    score: int


class EnglishOption(Document):
    text: str
    score: int
    feedback: str = ""
    is_direct_translation: bool = Field(False, alias="isDirectTranslation")


class Question(Document):
    id: str
    difficult_japanese: str = Field(alias="difficultJapanese")
    trainer_prompt1: str = Field("", alias="trainerPrompt1")
    trainer_prompt2: str = Field("", alias="trainerPrompt2")
    simple_japanese_options: Dict[str, JapaneseOption] = Field(
        alias="simpleJapaneseOptions"
    )
    english_options: Dict[str, EnglishOption] = Field(alias="englishOptions")


# --- Workout results ---
class SetResult(Document):
    question_id: str = Field(alias="questionId")
    difficult_japanese: str = Field(alias="difficultJapanese")
    japanese_answer: JapaneseOption = Field(alias="japaneseAnswer")
    english_answer: EnglishOption = Field(alias="englishAnswer")
    best_japanese_answer: JapaneseOption = Field(alias="bestJapaneseAnswer")
    best_english_answer: EnglishOption = Field(alias="bestEnglishAnswer")
    bcal_burned: int = Field(alias="bcalBurned")
    set_number: int = Field(alias="setNumber")
    step1_seconds: int = Field(0, alias="step1Seconds")
    step2_seconds: int = Field(0, alias="step2Seconds")
    timed_out: bool = Field(False, alias="timedOut")
    direct_translation: bool = Field(False, alias="directTranslation")


class WorkoutRecord(Document):
    date: datetime
    total_bcal_burned: int = Field(alias="totalBcalBurned")
    step1_avg_seconds: Optional[float] = Field(None, alias="step1AvgSeconds")
    step2_avg_seconds: Optional[float] = Field(None, alias="step2AvgSeconds")
    direct_translation_error: Optional[bool] = Field(
        None, alias="directTranslationError"
    )
    set_burns: List[int] = Field(default_factory=list, alias="setBurns")


# --- Users ---
class Identity(BaseModel):
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None


class UserRecord(Document):
    email: Optional[str] = None
    display_name: Optional[str] = Field(None, alias="displayName")
    brain_fat_percentage: float = Field(35.0, alias="brainFatPercentage")
    total_bcal_burned: int = Field(0, alias="totalBcalBurned")
    total_workouts: int = Field(0, alias="totalWorkouts")
    last_workout_bcal: Optional[int] = Field(None, alias="lastWorkoutBcal")
    last_workout_date: Optional[datetime] = Field(None, alias="lastWorkoutDate")
    workout_history: List[WorkoutRecord] = Field(
        default_factory=list, alias="workoutHistory"
    )
    created_at: Optional[datetime] = Field(None, alias="createdAt")


# --- API responses ---
class WorkoutReport(BaseModel):
    total_bcal_burned: int
    brain_fat_reduction: float
    sets: List[SetResult]


class ProfileSummary(BaseModel):
    display_name: Optional[str]
    brain_fat_percentage: float
    brain_fitness_level: int
    total_bcal_burned: int
    total_workouts: int
    last_workout_bcal: Optional[int]
    workout_streak: int
    step1_avg_seconds: Optional[float]
    step2_avg_seconds: Optional[float]
    direct_translation_error_rate: float
