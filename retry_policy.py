import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Número fixo de tentativas com intervalo fixo entre elas."""

    max_attempts: int = 3
    delay_seconds: float = 1.5

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts deve ser >= 1")
        if self.delay_seconds < 0:
            raise ValueError("delay_seconds não pode ser negativo")


DEFAULT_RETRY_POLICY = RetryPolicy()


async def run_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    label: str = "operação",
) -> T:
    """
    Executa `operation` (uma fábrica de corrotinas) até `policy.max_attempts` vezes.
    Qualquer exceção dispara nova tentativa; esgotadas as tentativas, a última
    exceção é relançada sem embrulho.
    """
    last_exception = None

    for attempt in range(1, policy.max_attempts + 1):
        try:
            return await operation()
        except Exception as e:
            last_exception = e
            if attempt < policy.max_attempts:
                logger.warning(
                    f"⚠️ Tentativa {attempt}/{policy.max_attempts} falhou em {label}: {e}. "
                    f"Nova tentativa em {policy.delay_seconds}s..."
                )
                await asyncio.sleep(policy.delay_seconds)
            else:
                logger.error(f"❌ Todas as {policy.max_attempts} tentativas falharam em {label}: {e}")

    raise last_exception
