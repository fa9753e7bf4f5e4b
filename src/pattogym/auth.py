import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple

from firebase_admin import auth as firebase_auth

from .config import settings
from .errors import AuthError
from .models import Identity

logger = logging.getLogger(__name__)


class IdentityProvider(ABC):
    """Turns a client-side sign-in token into a verified identity."""

    @abstractmethod
    def verify(self, id_token: str) -> Identity:
        pass


class FirebaseIdentityProvider(IdentityProvider):
    def __init__(self, app):
        self.app = app

    def verify(self, id_token: str) -> Identity:
        try:
            claims = firebase_auth.verify_id_token(id_token, app=self.app)
        except Exception as e:
            logger.error(f"Error verifying ID token: {e}")
            raise AuthError("Invalid sign-in token") from e
        return Identity(
            uid=claims["uid"],
            email=claims.get("email"),
            display_name=claims.get("name"),
        )


class AuthSessions:
    """Signed-in identities keyed by the auth cookie value."""

    def __init__(self, timeout_minutes: int = settings.SESSION_TIMEOUT_MINUTES):
        self.timeout = timedelta(minutes=timeout_minutes)
        self._sessions: Dict[str, Tuple[Identity, datetime]] = {}

    def _expired(self, created_at: datetime) -> bool:
        return datetime.now() - created_at > self.timeout

    def prune(self) -> int:
        """Drops expired sign-ins whose cookie never came back."""
        stale = [t for t, (_, created) in self._sessions.items() if self._expired(created)]
        for token in stale:
            self._sessions.pop(token, None)
        return len(stale)

    def sign_in(self, identity: Identity) -> str:
        self.prune()
        token = str(uuid.uuid4())
        self._sessions[token] = (identity, datetime.now())
        return token

    def get(self, token: Optional[str]) -> Optional[Identity]:
        if not token or token not in self._sessions:
            return None
        identity, created_at = self._sessions[token]
        if self._expired(created_at):
            del self._sessions[token]
            return None
        return identity

    def sign_out(self, token: Optional[str]) -> None:
        if token:
            self._sessions.pop(token, None)
