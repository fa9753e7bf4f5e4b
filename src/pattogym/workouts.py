import logging
from datetime import datetime, timedelta
from typing import Dict, Optional, Set, Tuple

from .config import settings
from .errors import FetchError, PersistenceError
from .session import Event, WorkoutConfig, WorkoutSession
from .store import DocumentStore

logger = logging.getLogger(__name__)


class WorkoutService:
    """Starts workout sessions, routes events to them and saves the results."""

    def __init__(
        self,
        store: DocumentStore,
        config: Optional[WorkoutConfig] = None,
        timeout_minutes: int = settings.SESSION_TIMEOUT_MINUTES,
    ):
        self.store = store
        self.config = config or WorkoutConfig.from_settings()
        self.timeout = timedelta(minutes=timeout_minutes)
        self.sessions: Dict[str, Tuple[str, WorkoutSession]] = {}
        self._saved: Set[str] = set()

    def prune(self) -> int:
        """Drops sessions older than the timeout, finished or abandoned."""
        now = datetime.now()
        stale = [
            sid
            for sid, (_, session) in list(self.sessions.items())
            if now - session.created_at > self.timeout
        ]
        for sid in stale:
            self.discard(sid)
        if stale:
            logger.info(f"Pruned {len(stale)} expired workout sessions")
        return len(stale)

    def start(self, uid: str) -> WorkoutSession:
        self.prune()
        session = WorkoutSession(self.config)
        try:
            pool = self.store.fetch_questions()
        except FetchError:
            session.fail("Failed to fetch questions")
            raise
        session.select_questions(pool)

        self.sessions[session.id] = (uid, session)
        logger.info(
            f"New workout session: {session.id} [User: {uid}, Sets: {session.total_sets}]"
        )
        return session

    def get(self, session_id: Optional[str], uid: str) -> Optional[WorkoutSession]:
        if not session_id or session_id not in self.sessions:
            return None
        owner, session = self.sessions[session_id]
        if owner != uid:
            return None
        if datetime.now() - session.created_at > self.timeout:
            self.discard(session_id)
            return None
        return session

    def dispatch(self, session: WorkoutSession, event: Event) -> bool:
        """Applies ``event``; returns True when the workout just finished."""
        session.dispatch(event)
        if session.is_complete and session.id not in self._saved:
            self._saved.add(session.id)
            return True
        return False

    def quit(self, session: WorkoutSession) -> None:
        session.quit()
        self.discard(session.id)
        logger.info(f"Session {session.id} quit; nothing saved")

    def discard(self, session_id: str) -> None:
        self.sessions.pop(session_id, None)
        self._saved.discard(session_id)

    def save_workout(self, uid: str, session: WorkoutSession) -> None:
        """Best-effort write of a finished workout; failures are only logged."""
        record = session.workout_record()
        try:
            user = self.store.record_workout(
                uid, record, session.brain_fat_reduction or 0.0
            )
        except PersistenceError as e:
            logger.error(f"Failed to save workout {session.id} for {uid}: {e}")
            return
        logger.info(
            f"Saved workout {session.id} for {uid}: {record.total_bcal_burned} BCal, "
            f"brain fat now {user.brain_fat_percentage:.1f}%"
        )
