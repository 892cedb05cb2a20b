# complaintdesk/core/config.py
from typing import List, Union, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator


class Settings(BaseSettings):
    # ==== Інфраструктура ====
    redis_url: str = "redis://redis:6379/0"
    notifications_queue: str = "notifications"

    # ==== Auth (токени видає зовнішній сервіс, ми лише перевіряємо) ====
    jwt_secret: str = "changeme"
    jwt_alg: str = "HS256"

    # ==== CORS ====
    # CORS_ORIGINS=http://localhost:5173,http://127.0.0.1:5173,...
    cors_origins: Union[str, List[str]] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # ==== Політика скарг ====
    # через скільки днів після призначення нерозв'язана скарга ескалюється
    escalation_threshold_days: int = 2
    # HoD бачить лише призначене йому / адресоване йому напряму
    hod_strict_recipient: bool = False

    # ==== Вебхуки воркера ====
    webhook_secret: Optional[str] = None
    webhook_escalation_url: Optional[str] = None

    # ==== Логування / Оточення ====
    env: str = "dev"          # dev|staging|prod
    log_level: str = "INFO"   # DEBUG|INFO|WARNING|ERROR

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        if isinstance(v, str):
            s = v.strip()
            if s.startswith("[") and s.endswith("]"):
                import json
                try:
                    parsed = json.loads(s)
                except ValueError:
                    parsed = None
                if isinstance(parsed, list):
                    return [str(i).strip() for i in parsed if str(i).strip()]
            return [i.strip() for i in s.split(",") if i.strip()]
        return v


settings = Settings()
