import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DEFAULT_TARGETS_PATH = Path(__file__).resolve().parents[1] / "targets.yml"


class Settings:
    PROBEMON_TARGETS_PATH: str = os.getenv(
        "PROBEMON_TARGETS_PATH", str(DEFAULT_TARGETS_PATH)
    )
    PROBE_TIMEOUT_SECONDS: float = float(os.getenv("PROBE_TIMEOUT_SECONDS", "5"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", 8080))


settings = Settings()
