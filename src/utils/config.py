import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_API_URL = "http://localhost:5000/api"
DEFAULT_DATA_PATH = "data/storefront.sqlite"


def _to_float(val: Optional[str], default: float) -> float:
    try:
        return float(val)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class Settings:
    """
    Runtime configuration, read once at startup.

    Fields:
      - api_url: base url of the storefront REST API (including the /api prefix)
      - api_timeout: per request timeout in seconds
      - data_path: sqlite file holding the persisted credentials
      - log_file: optional file the diagnostic log is mirrored to
      - debug: DEBUG log level when set
    """

    api_url: str = DEFAULT_API_URL
    api_timeout: float = 10.0
    data_path: str = DEFAULT_DATA_PATH
    log_file: Optional[str] = None
    debug: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            api_url=os.getenv("STOREFRONT_API_URL") or DEFAULT_API_URL,
            api_timeout=_to_float(os.getenv("STOREFRONT_API_TIMEOUT"), 10.0),
            data_path=os.getenv("STOREFRONT_DATA_PATH") or DEFAULT_DATA_PATH,
            log_file=os.getenv("STOREFRONT_LOG_FILE") or None,
            debug=bool(os.getenv("DEBUG")),
        )
