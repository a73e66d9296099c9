import logging

from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import List, Optional

class Settings(BaseSettings):
    # Environment
    ENV: str = "development"
    CONFIG_STRICT: bool = False

    # Database
    DATABASE_URL: Optional[str] = None
    TEST_DATABASE_URL: Optional[str] = None

    # Auth (HS256 tokens issued by the main app)
    JWT_SECRET: Optional[str] = None
    JWT_ALGORITHMS: str = "HS256"  # comma-separated

    # Modle game
    MODLE_DEFAULT_LANGUAGE: str = "English"
    MODLE_LANGUAGES: str = "English,Hindi,Tamil,Telugu,Kannada,Malayalam"  # comma-separated
    MODLE_MAX_WRITE_RETRIES: int = 5
    # Create the user record on first write for an authenticated id
    MODLE_AUTO_PROVISION_USERS: bool = True
    # Comma-separated user ids allowed to manage puzzles
    MODLE_ADMIN_USER_IDS: str = ""

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"  # comma-separated

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def modle_languages(self) -> List[str]:
        return [lang.strip() for lang in self.MODLE_LANGUAGES.split(",") if lang.strip()]

    def jwt_algorithms(self) -> List[str]:
        return [alg.strip() for alg in self.JWT_ALGORITHMS.split(",") if alg.strip()]

    def admin_user_ids(self) -> List[str]:
        return [uid.strip() for uid in self.MODLE_ADMIN_USER_IDS.split(",") if uid.strip()]

    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


settings = Settings()


def validate_config(strict: Optional[bool] = None, settings_obj: Optional[Settings] = None, logger: Optional[logging.Logger] = None) -> bool:
    """Validate required configuration.

    In strict mode raise RuntimeError; otherwise emit warnings only.
    Secrets are not logged, only missing keys.
    """
    cfg = settings_obj or settings
    log = logger or logging.getLogger("modle")
    strict_mode = strict if strict is not None else getattr(cfg, "CONFIG_STRICT", False)

    required_keys = [
        "DATABASE_URL",
        "JWT_SECRET",
    ]

    missing = [key for key in required_keys if not getattr(cfg, key, None)]
    if missing:
        message = f"Missing required configuration: {', '.join(missing)}"
        if strict_mode:
            raise RuntimeError(message)
        log.warning(message)

    return True
