import os

PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))


class Settings:
    PROJECT_NAME: str = "pattogym"
    DEBUG: bool = os.environ.get("DEBUG", "").lower() in ("1", "true", "yes")
    LOG_DIR: str = os.environ.get("LOG_DIR", "log")
    LOG_FILE: str = "pattogym.log"
    DB_DIR: str = os.environ.get("DB_DIR", "db")
    DB_FILE: str = "pattogym.db"
    ROOT_PATH: str = os.environ.get("ROOT_PATH", "")
    TEMPLATE_DIR: str = os.path.join(PACKAGE_DIR, "templates")
    STATIC_DIR: str = os.path.join(PACKAGE_DIR, "static")

    # Document store: "firestore" or "memory"
    STORE_BACKEND: str = os.environ.get("STORE_BACKEND", "firestore")
    QUESTIONS_FILE: str = os.environ.get("QUESTIONS_FILE", "data/questions.json")
    FIREBASE_CREDENTIALS: str = os.environ.get("FIREBASE_CREDENTIALS", "")
    FIREBASE_PROJECT_ID: str = os.environ.get("FIREBASE_PROJECT_ID", "")
    # Passed to the browser for popup sign-in
    FIREBASE_WEB_API_KEY: str = os.environ.get("FIREBASE_WEB_API_KEY", "")
    FIREBASE_AUTH_DOMAIN: str = os.environ.get("FIREBASE_AUTH_DOMAIN", "")

    SESSION_COOKIE_NAME: str = "workout_session_id"
    AUTH_COOKIE_NAME: str = "gym_auth_id"
    SESSION_TIMEOUT_MINUTES: int = 120

    # Workout
    SESSION_SIZE: int = 5
    STEP1_DURATION: int = int(os.environ.get("STEP1_DURATION", "7"))
    STEP2_DURATION: int = int(os.environ.get("STEP2_DURATION", "10"))
    SPEED_MULTIPLIER: int = int(os.environ.get("SPEED_MULTIPLIER", "2"))
    BRAIN_FAT_DIVISOR: int = int(os.environ.get("BRAIN_FAT_DIVISOR", "1000"))
    BASELINE_BRAIN_FAT: float = 35.0


settings = Settings()
