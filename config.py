import os
import logging
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from retry_policy import RetryPolicy

# Carrega variáveis de ambiente (.env na raiz do projeto)
load_dotenv()

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'

DEFAULT_MODEL = "gemini-2.5-flash"


@dataclass(frozen=True)
class Settings:
    google_api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    temperature: float = 0.2
    retry_attempts: int = 3
    retry_delay: float = 1.5
    log_level: str = "INFO"

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(max_attempts=self.retry_attempts, delay_seconds=self.retry_delay)

    def with_api_key(self, api_key: Optional[str]) -> "Settings":
        """A chave digitada na barra lateral tem precedência sobre a do .env."""
        if not api_key:
            return self
        return Settings(
            google_api_key=api_key,
            model=self.model,
            temperature=self.temperature,
            retry_attempts=self.retry_attempts,
            retry_delay=self.retry_delay,
            log_level=self.log_level,
        )


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        logging.getLogger(__name__).warning(f"⚠️ {name}='{raw}' inválido. Usando {default}.")
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logging.getLogger(__name__).warning(f"⚠️ {name}='{raw}' inválido. Usando {default}.")
        return default


def load_settings() -> Settings:
    return Settings(
        google_api_key=os.environ.get("GOOGLE_API_KEY") or None,
        model=os.environ.get("LGPD_MODEL") or DEFAULT_MODEL,
        temperature=_env_float("LGPD_TEMPERATURE", 0.2),
        retry_attempts=max(1, _env_int("LGPD_RETRY_ATTEMPTS", 3)),
        retry_delay=max(0.0, _env_float("LGPD_RETRY_DELAY", 1.5)),
        log_level=(os.environ.get("LGPD_LOG_LEVEL") or "INFO").upper(),
    )


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
    )
