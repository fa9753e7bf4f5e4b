import logging
import random
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel

from .config import settings
from .errors import EmptyResultError, InvalidTransition
from .models import (
    EnglishOption,
    JapaneseOption,
    Question,
    SetResult,
    WorkoutRecord,
    WorkoutReport,
)
from .scoring import best_option, brain_fat_reduction, round_burn

logger = logging.getLogger(__name__)

TIMEOUT_JAPANESE = JapaneseOption(text="Timeout", score=0)
TIMEOUT_ENGLISH = EnglishOption(text="Timeout", score=0, feedback="No answer provided")


class Phase(str, Enum):
    LOADING = "loading"
    READY = "ready"
    COMPLETE = "complete"
    ERROR = "error"
    QUIT = "quit"


class WorkoutConfig(BaseModel):
    session_size: int = 5
    step1_duration: int = 7
    step2_duration: int = 10
    speed_multiplier: int = 2
    brain_fat_divisor: int = 1000

    @classmethod
    def from_settings(cls) -> "WorkoutConfig":
        return cls(
            session_size=settings.SESSION_SIZE,
            step1_duration=settings.STEP1_DURATION,
            step2_duration=settings.STEP2_DURATION,
            speed_multiplier=settings.SPEED_MULTIPLIER,
            brain_fat_divisor=settings.BRAIN_FAT_DIVISOR,
        )


# --- Events ---
class Tick(BaseModel):
    pass


class ChooseJapanese(BaseModel):
    option_key: str


class ChooseEnglish(BaseModel):
    option_key: str


class Quit(BaseModel):
    pass


Event = Union[Tick, ChooseJapanese, ChooseEnglish, Quit]


class WorkoutSession:
    """
    One running workout: a fixed draw of questions walked through in
    two-step sets, each step on its own countdown.

    Every state change goes through the methods below (or ``dispatch``);
    nothing else mutates the session.
    """

    def __init__(
        self,
        config: Optional[WorkoutConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        self.id = str(uuid.uuid4())
        self.config = config or WorkoutConfig.from_settings()
        self.rng = rng or random.Random()
        self.created_at = datetime.now()
        self.completed_at: Optional[datetime] = None

        self.phase = Phase.LOADING
        self.error: Optional[str] = None
        self.questions: List[Question] = []
        self.index = 0
        self.step = 1
        self.timer = self.config.step1_duration
        self.japanese_score: Optional[int] = None
        self.total_bcal = 0
        self.results: List[SetResult] = []
        self.brain_fat_reduction: Optional[float] = None

        self._japanese_choice: Optional[JapaneseOption] = None
        self._step1_seconds = 0

    # --- Loading ---
    def select_questions(self, pool: List[Question]) -> None:
        if self.phase is not Phase.LOADING:
            raise InvalidTransition(f"Cannot load questions while {self.phase.value}")
        if not pool:
            self.fail("No questions available")
            raise EmptyResultError("Question store is empty")

        count = min(self.config.session_size, len(pool))
        if count < self.config.session_size:
            logger.warning(
                f"Only {len(pool)} questions available; session {self.id} "
                f"will run {count} sets"
            )
        self.questions = self.rng.sample(pool, count)
        self.index = 0
        self._start_step(1)
        self.phase = Phase.READY

    def fail(self, message: str) -> None:
        self.phase = Phase.ERROR
        self.error = message

    # --- Properties ---
    @property
    def current_question(self) -> Question:
        return self.questions[self.index]

    @property
    def total_sets(self) -> int:
        return len(self.questions)

    @property
    def is_complete(self) -> bool:
        return self.phase is Phase.COMPLETE

    # --- Transitions ---
    def dispatch(self, event: Event) -> None:
        """Single entry point for clock ticks and button presses."""
        if isinstance(event, Tick):
            self.tick()
        elif isinstance(event, ChooseJapanese):
            self.choose_japanese(event.option_key)
        elif isinstance(event, ChooseEnglish):
            self.choose_english(event.option_key)
        elif isinstance(event, Quit):
            self.quit()
        else:
            raise InvalidTransition(f"Unknown event {event!r}")

    def tick(self) -> None:
        self._require_ready()
        if self.timer > 0:
            self.timer -= 1
        if self.timer <= 0:
            self.on_timer_expire()

    def choose_japanese(self, option_key: str) -> None:
        self._require_ready(step=1)
        option = self.current_question.simple_japanese_options.get(option_key)
        if option is None:
            raise InvalidTransition(f"Unknown Japanese option {option_key!r}")

        self.japanese_score = option.score
        self._japanese_choice = option
        self._step1_seconds = self.config.step1_duration - self.timer
        self._start_step(2)

    def choose_english(self, option_key: str) -> None:
        self._require_ready(step=2)
        if self.japanese_score is None:
            raise InvalidTransition("Step 1 has not been answered")
        option = self.current_question.english_options.get(option_key)
        if option is None:
            raise InvalidTransition(f"Unknown English option {option_key!r}")

        burn = round_burn(
            self.japanese_score, option.score, self.timer, self.config.speed_multiplier
        )
        self._record_set(
            japanese=self._japanese_choice or TIMEOUT_JAPANESE,
            english=option,
            burn=burn,
            step2_seconds=self.config.step2_duration - self.timer,
        )
        self.advance_round()

    def on_timer_expire(self) -> None:
        self._require_ready()
        if self.step == 1:
            self.japanese_score = 0
            self._japanese_choice = None
            self._step1_seconds = self.config.step1_duration
            self._start_step(2)
            return

        self._record_set(
            japanese=TIMEOUT_JAPANESE,
            english=TIMEOUT_ENGLISH,
            burn=0,
            step2_seconds=self.config.step2_duration,
            timed_out=True,
        )
        self.advance_round()

    def advance_round(self) -> None:
        if self.phase is not Phase.READY:
            return
        if self.index >= self.total_sets - 1:
            self.phase = Phase.COMPLETE
            self.completed_at = datetime.now(timezone.utc)
            self.brain_fat_reduction = brain_fat_reduction(
                self.total_bcal, self.config.brain_fat_divisor
            )
            logger.info(f"Session {self.id} complete: {self.total_bcal} BCal")
            return

        self.index += 1
        self.japanese_score = None
        self._japanese_choice = None
        self._step1_seconds = 0
        self._start_step(1)

    def quit(self) -> None:
        self.phase = Phase.QUIT
        self.questions = []
        self.results = []
        self.total_bcal = 0
        self.japanese_score = None
        self._japanese_choice = None

    # --- Helpers ---
    def _require_ready(self, step: Optional[int] = None) -> None:
        if self.phase is not Phase.READY:
            raise InvalidTransition(f"Session is {self.phase.value}")
        if step is not None and self.step != step:
            raise InvalidTransition(f"Expected step {step}, session is at step {self.step}")

    def _start_step(self, step: int) -> None:
        self.step = step
        if step == 1:
            self.timer = self.config.step1_duration
        else:
            self.timer = self.config.step2_duration

    def _record_set(
        self,
        japanese: JapaneseOption,
        english: EnglishOption,
        burn: int,
        step2_seconds: int,
        timed_out: bool = False,
    ) -> None:
        question = self.current_question
        self.total_bcal += burn
        self.results.append(
            SetResult(
                question_id=question.id,
                difficult_japanese=question.difficult_japanese,
                japanese_answer=japanese,
                english_answer=english,
                best_japanese_answer=best_option(question.simple_japanese_options),
                best_english_answer=best_option(question.english_options),
                bcal_burned=burn,
                set_number=self.index + 1,
                step1_seconds=self._step1_seconds,
                step2_seconds=step2_seconds,
                timed_out=timed_out,
                direct_translation=english.is_direct_translation,
            )
        )

    # --- Views ---
    def state(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "session_id": self.id,
            "phase": self.phase.value,
            "total_bcal_burned": self.total_bcal,
            "total_sets": self.total_sets,
        }
        if self.phase is Phase.ERROR:
            data["error"] = self.error
        if self.phase is not Phase.READY:
            return data

        question = self.current_question
        if self.step == 1:
            prompt = question.trainer_prompt1
            options = question.simple_japanese_options
        else:
            prompt = question.trainer_prompt2
            options = question.english_options
        data.update(
            {
                "set_number": self.index + 1,
                "step": self.step,
                "timer": self.timer,
                "trainer_prompt": prompt,
                "difficult_japanese": question.difficult_japanese
                if self.step == 1
                else None,
                "options": [
                    {"key": key, "text": option.text} for key, option in options.items()
                ],
            }
        )
        return data

    def report(self) -> WorkoutReport:
        if not self.is_complete:
            raise InvalidTransition("Workout is not complete")
        return WorkoutReport(
            total_bcal_burned=self.total_bcal,
            brain_fat_reduction=self.brain_fat_reduction or 0.0,
            sets=self.results,
        )

    def workout_record(self) -> WorkoutRecord:
        if not self.is_complete:
            raise InvalidTransition("Workout is not complete")
        sets = len(self.results)
        return WorkoutRecord(
            date=self.completed_at,
            total_bcal_burned=self.total_bcal,
            step1_avg_seconds=sum(r.step1_seconds for r in self.results) / sets,
            step2_avg_seconds=sum(r.step2_seconds for r in self.results) / sets,
            direct_translation_error=any(r.direct_translation for r in self.results),
            set_burns=[r.bcal_burned for r in self.results],
        )
