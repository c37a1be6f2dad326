from dataclasses import dataclass
import os
from dotenv import load_dotenv


load_dotenv()


def _split_csv(value: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    database_path: str = os.getenv("CLASSLLY_DATABASE_PATH", "data/classlly.db")
    academic_calendar_path: str = os.getenv("CLASSLLY_ACADEMIC_CALENDAR_PATH", "")

    log_level: str = os.getenv("CLASSLLY_LOG_LEVEL", "INFO").upper()
    log_file: str = os.getenv("CLASSLLY_LOG_FILE", "")

    widget_snapshot_path: str = os.getenv("CLASSLLY_WIDGET_SNAPSHOT_PATH", "data/widget_snapshot.json")
    widget_max_refresh_minutes: int = int(os.getenv("CLASSLLY_WIDGET_MAX_REFRESH_MINUTES", "60"))

    cors_allowed_origins: tuple[str, ...] = _split_csv(
        os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173")
    )
    cors_allow_origin_regex: str = os.getenv(
        "CORS_ALLOW_ORIGIN_REGEX",
        r"^https?:\/\/(localhost|127\.0\.0\.1)(:\d+)?$",
    )


settings = Settings()
