import os
import random
import tempfile

# Keep log files and the log database out of the working tree.
_RUNTIME_DIR = tempfile.mkdtemp(prefix="pattogym-tests-")
os.environ.setdefault("LOG_DIR", os.path.join(_RUNTIME_DIR, "log"))
os.environ.setdefault("DB_DIR", os.path.join(_RUNTIME_DIR, "db"))

import pytest
from fastapi.testclient import TestClient

from pattogym.app import create_app
from pattogym.auth import IdentityProvider
from pattogym.errors import AuthError, FetchError
from pattogym.models import Identity, Question
from pattogym.services import GymServices
from pattogym.session import WorkoutConfig, WorkoutSession
from pattogym.store import MemoryStore


def make_question(qid, japanese_scores=(5, 3, 1, 0), english_scores=(5, 4, 1, 0)):
    keys = "abcd"
    return Question.model_validate(
        {
            "id": qid,
            "difficultJapanese": f"難しい日本語 {qid}",
            "trainerPrompt1": "意図は？",
            "trainerPrompt2": "英語は？",
            "simpleJapaneseOptions": {
                key: {"text": f"{qid} jp {key}", "score": score}
                for key, score in zip(keys, japanese_scores)
            },
            "englishOptions": {
                key: {
                    "text": f"{qid} en {key}",
                    "score": score,
                    "feedback": f"feedback {key}",
                    "isDirectTranslation": key == "b",
                }
                for key, score in zip(keys, english_scores)
            },
        }
    )


class TokenIdentityProvider(IdentityProvider):
    def __init__(self, identities):
        self.identities = identities

    def verify(self, id_token):
        try:
            return self.identities[id_token]
        except KeyError:
            raise AuthError("Invalid sign-in token")


class BrokenStore(MemoryStore):
    def fetch_questions(self):
        raise FetchError("Failed to fetch questions")


@pytest.fixture
def questions():
    return [make_question(f"q{i}") for i in range(8)]


@pytest.fixture
def config():
    return WorkoutConfig()


@pytest.fixture
def session(questions, config):
    workout = WorkoutSession(config, rng=random.Random(7))
    workout.select_questions(questions)
    return workout


@pytest.fixture
def store(questions):
    return MemoryStore(questions)


@pytest.fixture
def identity():
    return Identity(uid="user-1", email="trainee@example.com", display_name="Trainee")


@pytest.fixture
def services(store, identity):
    return GymServices(store, TokenIdentityProvider({"good-token": identity}))


@pytest.fixture
def client(services):
    app = create_app(services)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def signed_in(client):
    response = client.post("/api/auth/session", data={"id_token": "good-token"})
    assert response.status_code == 200
    return client
