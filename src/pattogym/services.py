import logging
from typing import Optional

import firebase_admin

from .auth import AuthSessions, FirebaseIdentityProvider, IdentityProvider
from .config import settings
from .firebase import close_firebase_app, init_firebase_app
from .store import DocumentStore, FirestoreStore, MemoryStore
from .workouts import WorkoutService

logger = logging.getLogger(__name__)


class GymServices:
    """
    Everything the routes talk to, built once at startup and closed on
    shutdown.
    """

    def __init__(
        self,
        store: DocumentStore,
        identity: IdentityProvider,
        firebase_app: Optional[firebase_admin.App] = None,
    ):
        self.store = store
        self.identity = identity
        self.firebase_app = firebase_app
        self.auth_sessions = AuthSessions()
        self.workouts = WorkoutService(store)

    @classmethod
    def from_settings(cls) -> "GymServices":
        app = init_firebase_app()
        if settings.STORE_BACKEND == "memory":
            store = MemoryStore.from_json_file(settings.QUESTIONS_FILE)
        else:
            store = FirestoreStore(app)
        logger.info(f"Using {type(store).__name__}")
        return cls(store, FirebaseIdentityProvider(app), firebase_app=app)

    def close(self) -> None:
        self.store.close()
        if self.firebase_app is not None:
            close_firebase_app(self.firebase_app)
