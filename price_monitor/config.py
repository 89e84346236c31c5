"""Configuration management from environment variables."""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file
load_dotenv()

# Project root
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = Path(os.getenv("DATA_DIR", str(PROJECT_ROOT / "data")))
STATE_DB = Path(os.getenv("STATE_DB", str(DATA_DIR / "state.db")))

WORKFLOW_BASE = "https://asia-south1.api.boltic.io/service/webhook/temporal/v1.0/05245678-66bd-4f6b-a3ee-a4fd5cbfd249/workflows/execute"


class Config:
    """Application configuration."""

    # Workflow endpoints
    ENROLL_URL: str | None = os.getenv("ENROLL_URL", f"{WORKFLOW_BASE}/2fca5837-c66a-406e-a5d0-17d70993a757")
    FETCH_URL: str | None = os.getenv("FETCH_URL", "https://asia-south1.workflow.boltic.app/38aca56e-f172-4cc7-bdb2-3a2ef23704f8")
    APPROVE_URL: str | None = os.getenv("APPROVE_URL", "https://asia-south1.workflow.boltic.app/8e64fc6f-40e7-4ca5-8477-dda5dc79f0cb")
    DELETE_URL: str | None = os.getenv("DELETE_URL", f"{WORKFLOW_BASE}/799beb4b-1818-46c6-8b0d-0635e45801e8")

    # Transport
    TIMEOUT: float = float(os.getenv("TIMEOUT", "20"))

    # Durable slot
    STATE_KEY: str = os.getenv("STATE_KEY", "products")

    # Seeding
    SEED_DELAY: float = float(os.getenv("SEED_DELAY", "1.0"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # API Security
    API_KEY: str | None = os.getenv("API_KEY")

    @classmethod
    def validate(cls) -> None:
        """Validate required configuration."""
        errors = []
        for name in ("ENROLL_URL", "FETCH_URL", "APPROVE_URL", "DELETE_URL"):
            if not getattr(cls, name):
                errors.append(f"{name} is required")
        if cls.TIMEOUT <= 0:
            errors.append("TIMEOUT must be positive")
        if errors:
            raise ValueError(f"Configuration errors: {', '.join(errors)}")


config = Config()
