import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from firebase_admin import firestore
from google.api_core.exceptions import AlreadyExists

from .config import settings
from .errors import FetchError, PersistenceError
from .models import Identity, Question, UserRecord, WorkoutRecord
from .scoring import reduce_brain_fat

logger = logging.getLogger(__name__)

QUESTIONS_COLLECTION = "questions"
USERS_COLLECTION = "users"


def new_user_record(identity: Identity) -> UserRecord:
    return UserRecord(
        email=identity.email,
        display_name=identity.display_name,
        brain_fat_percentage=settings.BASELINE_BRAIN_FAT,
        created_at=datetime.now(timezone.utc),
    )


def apply_workout(user: UserRecord, record: WorkoutRecord, reduction: float) -> UserRecord:
    """Returns ``user`` with one finished workout merged in."""
    return user.model_copy(
        update={
            "brain_fat_percentage": reduce_brain_fat(
                user.brain_fat_percentage, reduction
            ),
            "total_bcal_burned": user.total_bcal_burned + record.total_bcal_burned,
            "total_workouts": user.total_workouts + 1,
            "last_workout_bcal": record.total_bcal_burned,
            "last_workout_date": record.date,
            "workout_history": [*user.workout_history, record],
        }
    )


class DocumentStore(ABC):
    """Question bank and per-user records."""

    @abstractmethod
    def fetch_questions(self) -> List[Question]:
        pass

    @abstractmethod
    def get_user(self, uid: str) -> Optional[UserRecord]:
        pass

    @abstractmethod
    def ensure_user(self, identity: Identity) -> Tuple[UserRecord, bool]:
        """Returns the user's record and whether it was just created."""

    @abstractmethod
    def record_workout(
        self, uid: str, record: WorkoutRecord, reduction: float
    ) -> UserRecord:
        pass

    @abstractmethod
    def upsert_question(self, question: Question) -> None:
        pass

    def close(self) -> None:
        pass


class MemoryStore(DocumentStore):
    """Dict-backed store for local development and tests."""

    def __init__(self, questions: Optional[List[Question]] = None):
        self._lock = threading.Lock()
        self.questions: Dict[str, Question] = {}
        self.users: Dict[str, UserRecord] = {}
        for question in questions or []:
            self.questions[question.id] = question

    @classmethod
    def from_json_file(cls, path: str) -> "MemoryStore":
        store = cls()
        if not os.path.exists(path):
            logger.warning(f"Question file {path} not found; starting with no questions.")
            return store
        for question in load_questions_file(path):
            store.upsert_question(question)
        logger.info(f"Loaded {len(store.questions)} questions from {path}")
        return store

    def fetch_questions(self) -> List[Question]:
        with self._lock:
            return list(self.questions.values())

    def get_user(self, uid: str) -> Optional[UserRecord]:
        with self._lock:
            return self.users.get(uid)

    def ensure_user(self, identity: Identity) -> Tuple[UserRecord, bool]:
        with self._lock:
            if identity.uid in self.users:
                return self.users[identity.uid], False
            record = new_user_record(identity)
            self.users[identity.uid] = record
            return record, True

    def record_workout(
        self, uid: str, record: WorkoutRecord, reduction: float
    ) -> UserRecord:
        with self._lock:
            user = self.users.get(uid) or UserRecord()
            updated = apply_workout(user, record, reduction)
            self.users[uid] = updated
            return updated

    def upsert_question(self, question: Question) -> None:
        with self._lock:
            self.questions[question.id] = question


class FirestoreStore(DocumentStore):
    """
    Firestore-backed store. Questions live in ``questions`` keyed by their
    declared id; users in ``users`` keyed by identity uid.
    """

    def __init__(self, app):
        self.db = firestore.client(app=app)

    @property
    def _questions(self):
        return self.db.collection(QUESTIONS_COLLECTION)

    @property
    def _users(self):
        return self.db.collection(USERS_COLLECTION)

    def fetch_questions(self) -> List[Question]:
        try:
            return [
                Question.model_validate({**(doc.to_dict() or {}), "id": doc.id})
                for doc in self._questions.stream()
            ]
        except Exception as e:
            logger.error(f"Failed to fetch questions: {e}")
            raise FetchError("Failed to fetch questions") from e

    def get_user(self, uid: str) -> Optional[UserRecord]:
        try:
            snapshot = self._users.document(uid).get()
        except Exception as e:
            raise PersistenceError(f"Failed to read user {uid}") from e
        if not snapshot.exists:
            return None
        return UserRecord.model_validate(snapshot.to_dict() or {})

    def ensure_user(self, identity: Identity) -> Tuple[UserRecord, bool]:
        existing = self.get_user(identity.uid)
        if existing is not None:
            return existing, False
        record = new_user_record(identity)
        data = record.to_document()
        # History and totals are created by the first workout merge.
        for key in ("workoutHistory", "totalBcalBurned", "totalWorkouts"):
            data.pop(key)
        try:
            self._users.document(identity.uid).create(data)
        except AlreadyExists:
            # A concurrent sign-in created it between our read and write.
            return self.get_user(identity.uid) or record, False
        except Exception as e:
            raise PersistenceError(f"Failed to create user {identity.uid}") from e
        logger.info(f"Created user record for {identity.uid}")
        return record, True

    def record_workout(
        self, uid: str, record: WorkoutRecord, reduction: float
    ) -> UserRecord:
        ref = self._users.document(uid)

        @firestore.transactional
        def merge(transaction) -> UserRecord:
            snapshot = ref.get(transaction=transaction)
            current = (
                UserRecord.model_validate(snapshot.to_dict() or {})
                if snapshot.exists
                else UserRecord()
            )
            updated = apply_workout(current, record, reduction)
            transaction.set(
                ref,
                {
                    "brainFatPercentage": updated.brain_fat_percentage,
                    "totalBcalBurned": updated.total_bcal_burned,
                    "totalWorkouts": updated.total_workouts,
                    "lastWorkoutBcal": updated.last_workout_bcal,
                    "lastWorkoutDate": updated.last_workout_date,
                    "workoutHistory": firestore.ArrayUnion([record.to_document()]),
                },
                merge=True,
            )
            return updated

        try:
            return merge(self.db.transaction())
        except Exception as e:
            raise PersistenceError(f"Failed to save workout for {uid}") from e

    def upsert_question(self, question: Question) -> None:
        try:
            self._questions.document(question.id).set(question.to_document())
        except Exception as e:
            raise PersistenceError(f"Failed to write question {question.id}") from e

    def close(self) -> None:
        self.db.close()


def load_questions_file(path: str) -> List[Question]:
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    return [Question.model_validate(item) for item in raw]
