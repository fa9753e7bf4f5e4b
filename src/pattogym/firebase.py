import logging

import firebase_admin
from firebase_admin import credentials

from .config import settings

logger = logging.getLogger(__name__)

APP_NAME = "pattogym"


def init_firebase_app() -> firebase_admin.App:
    """Creates the Firebase app shared by the Firestore store and token checks."""
    if settings.FIREBASE_CREDENTIALS:
        cred = credentials.Certificate(settings.FIREBASE_CREDENTIALS)
    else:
        cred = credentials.ApplicationDefault()
    options = {}
    if settings.FIREBASE_PROJECT_ID:
        options["projectId"] = settings.FIREBASE_PROJECT_ID

    app = firebase_admin.initialize_app(cred, options, name=APP_NAME)
    logger.info(f"Firebase app initialized for project {app.project_id or '(default)'}")
    return app


def close_firebase_app(app: firebase_admin.App) -> None:
    firebase_admin.delete_app(app)
    logger.info("Firebase app closed")
