import os
from functools import lru_cache
from pathlib import Path


class Settings:
    def __init__(
        self,
        database_url: str,
        timezone: str,
        page_size: int,
        assistant_api_url: str,
        assistant_api_key: str,
        assistant_model: str,
        assistant_timeout_secs: float,
    ) -> None:
        self.database_url = database_url
        self.timezone = timezone
        self.page_size = page_size
        self.assistant_api_url = assistant_api_url
        self.assistant_api_key = assistant_api_key
        self.assistant_model = assistant_model
        self.assistant_timeout_secs = assistant_timeout_secs


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("FINANCE_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    data_dir = _ensure_data_dir()
    default_db = data_dir / "finance.db"
    database_url = os.getenv("FINANCE_DATABASE_URL", f"sqlite:///{default_db}")
    timezone = os.getenv("FINANCE_TIMEZONE", "Asia/Jakarta")
    page_size = int(os.getenv("FINANCE_PAGE_SIZE", "20"))
    assistant_api_url = os.getenv(
        "FINANCE_ASSISTANT_API_URL",
        "https://generativelanguage.googleapis.com/v1beta/models",
    )
    assistant_api_key = os.getenv("FINANCE_ASSISTANT_API_KEY", "")
    assistant_model = os.getenv("FINANCE_ASSISTANT_MODEL", "gemini-2.0-flash")
    assistant_timeout_secs = float(os.getenv("FINANCE_ASSISTANT_TIMEOUT_SECS", "20"))
    return Settings(
        database_url=database_url,
        timezone=timezone,
        page_size=page_size,
        assistant_api_url=assistant_api_url,
        assistant_api_key=assistant_api_key,
        assistant_model=assistant_model,
        assistant_timeout_secs=assistant_timeout_secs,
    )
