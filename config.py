import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv

# Custom person fields of the production Pipedrive account
DEFAULT_TRANSCRIPT_FIELD = "b4073939104c3d1283e703c3b3e9fb261a16b137"
DEFAULT_DURATION_FIELD = "22d4bfd3fc0227ef6f8a594346c30545b069d5fd"
DEFAULT_CALL_DATE_FIELD = "80347870cd9400fbc1a1d03bd082df463321bad5"


def _int_env(key: str, default: int) -> int:
    value = os.getenv(key)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    """Runtime configuration, read once at process start."""
    pipedrive_api_key: str = ""
    pipedrive_base_url: str = "https://api.pipedrive.com/v1"
    retell_api_key: str = ""
    retell_assistant_id: str = ""
    retell_base_url: str = "https://api.retellai.com"
    retell_from_number: str = "18005300627"
    redis_url: Optional[str] = None
    correlation_ttl: int = 72 * 3600
    idempotency_ttl: int = 3600
    http_timeout: float = 30.0
    transcript_field: str = DEFAULT_TRANSCRIPT_FIELD
    duration_field: str = DEFAULT_DURATION_FIELD
    call_date_field: str = DEFAULT_CALL_DATE_FIELD
    dnc_label: str = "Do Not Contact"
    log_level: str = "INFO"
    log_file: str = "logs/app.log"
    host: str = "0.0.0.0"
    port: int = 8080

    @property
    def simulation(self) -> bool:
        """True when no CRM credentials are present; processors only log."""
        return not self.pipedrive_api_key

    @property
    def dialer_configured(self) -> bool:
        return bool(self.retell_api_key and self.retell_assistant_id)


def load_settings() -> Settings:
    """Load settings from the environment (and a .env file if present)."""
    load_dotenv()
    return Settings(
        pipedrive_api_key=os.getenv("PIPEDRIVE_API_KEY", ""),
        pipedrive_base_url=os.getenv("PIPEDRIVE_BASE_URL", "https://api.pipedrive.com/v1").rstrip("/"),
        retell_api_key=os.getenv("RETELL_API_KEY", ""),
        retell_assistant_id=os.getenv("RETELL_ASSISTANT_ID", ""),
        retell_base_url=os.getenv("RETELL_BASE_URL", "https://api.retellai.com").rstrip("/"),
        retell_from_number=os.getenv("RETELL_FROM_NUMBER", "18005300627"),
        redis_url=os.getenv("REDIS_URL") or None,
        correlation_ttl=_int_env("CORRELATION_TTL_SECONDS", 72 * 3600),
        idempotency_ttl=_int_env("IDEMPOTENCY_TTL_SECONDS", 3600),
        http_timeout=float(_int_env("HTTP_TIMEOUT_SECONDS", 30)),
        transcript_field=os.getenv("PIPEDRIVE_FIELD_TRANSCRIPT", DEFAULT_TRANSCRIPT_FIELD),
        duration_field=os.getenv("PIPEDRIVE_FIELD_DURATION", DEFAULT_DURATION_FIELD),
        call_date_field=os.getenv("PIPEDRIVE_FIELD_CALL_DATE", DEFAULT_CALL_DATE_FIELD),
        dnc_label=os.getenv("PIPEDRIVE_DNC_LABEL", "Do Not Contact"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_file=os.getenv("LOG_FILE", "logs/app.log"),
        host=os.getenv("HOST", "0.0.0.0"),
        port=_int_env("PORT", 8080),
    )
