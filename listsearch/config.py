# listsearch/config.py
import os
from dataclasses import dataclass

# Identity
TENANT_ID = os.environ.get("TENANT_ID", "")
TOKEN_SIGNING_KEY = os.environ.get("TOKEN_SIGNING_KEY", "")
APP_BASE_URI = os.environ.get("APP_BASE_URI", "")  # issuer and audience of our tokens
TOKEN_LIFETIME_MIN = int(os.environ.get("TOKEN_LIFETIME_MIN", "60"))

# Search tuning
TOP_RESULT_COUNT = int(os.environ.get("TOP_RESULT_COUNT", "5"))
MINIMUM_CONFIDENCE_SCORE = int(os.environ.get("MINIMUM_CONFIDENCE_SCORE", "50"))  # 0-100

# QnA Maker runtime (generateAnswer)
QNA_RUNTIME_ENDPOINT = os.environ.get("QNA_RUNTIME_ENDPOINT", "")
QNA_ENDPOINT_KEY = os.environ.get("QNA_ENDPOINT_KEY", "")

# QnA Maker authoring (kb management)
QNA_AUTHORING_ENDPOINT = os.environ.get("QNA_AUTHORING_ENDPOINT", "https://westus.api.cognitive.microsoft.com")
QNA_SUBSCRIPTION_KEY = os.environ.get("QNA_SUBSCRIPTION_KEY", "")

# timeouts (seconds)
QNA_TIMEOUT_SEC = float(os.environ.get("QNA_TIMEOUT_SEC", "6"))

# KB metadata store
DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./listsearch.db")

# Admin endpoints (optional)
ADMIN_API_KEY = os.environ.get("ADMIN_API_KEY", "")

# Sessions
SESSION_MAX_ENTRIES = int(os.environ.get("SESSION_MAX_ENTRIES", "1000"))

# Logger
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


@dataclass(frozen=True)
class Settings:
    tenant_id: str = TENANT_ID
    top_result_count: int = TOP_RESULT_COUNT
    minimum_confidence_score: int = MINIMUM_CONFIDENCE_SCORE


def load_settings() -> Settings:
    return Settings()
