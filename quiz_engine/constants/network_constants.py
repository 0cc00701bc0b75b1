"""Network configuration constants for the quiz engine API."""

DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 8000
API_LOG_LEVEL: str = "info"
USER_ID_HEADER: str = "X-User-Id"
