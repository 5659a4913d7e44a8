import os


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev")

    # CORS
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Reverse proxy / IP headers
    TRUST_PROXY_HEADERS = os.environ.get("TRUST_PROXY_HEADERS", "1") == "1"

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Game
    TURN_DURATION_SEC = int(os.environ.get("TURN_DURATION_SEC", "45"))
    GUESS_LOCK_SEC = int(os.environ.get("GUESS_LOCK_SEC", "10"))
    MIN_PLAYERS = int(os.environ.get("MIN_PLAYERS", "3"))
    MAX_PLAYERS = int(os.environ.get("MAX_PLAYERS", "12"))
