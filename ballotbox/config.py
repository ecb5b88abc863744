import os
from datetime import timedelta
from pathlib import Path
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent  # project root (where wsgi.py is)
load_dotenv(BASE_DIR / ".env")

class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///" + str(BASE_DIR / "ballotbox.db"))
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Tokens are issued by the identity provider; we only verify them
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "jwt-dev-secret")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(
        minutes=int(os.getenv("JWT_ACCESS_TOKEN_EXPIRES_MIN", "30"))
    )

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    SWAGGER_TITLE = "Ranked-Choice Polling API"
    SWAGGER_VERSION = "1.0.0"
    SWAGGER = {"title": SWAGGER_TITLE, "uiversion": 3}
