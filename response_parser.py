"""
Montagem da resposta em streaming do modelo.

O modelo devolve texto livre que *deveria* conter um único objeto JSON.
Aqui juntamos os fragmentos, tiramos a cerca de código (```json ... ```),
recortamos do primeiro '{' ao último '}' e fazemos o parse.
"""
import json
import logging
import re
from typing import Any, AsyncIterable, Callable, Optional

from exceptions import AnalysisError, ErrorKind

logger = logging.getLogger(__name__)

FragmentObserver = Callable[[str], Any]

_FENCE_OPEN = re.compile(r"^\s*```[\w-]*[ \t]*\n?")
_FENCE_CLOSE = re.compile(r"\n?```\s*$")


async def collect_stream(fragments: AsyncIterable[str], on_fragment: Optional[FragmentObserver] = None) -> str:
    """
    Consome o iterador assíncrono do transporte e devolve o texto completo.
    O observador recebe cada fragmento (usado só para exibir o "pensamento" ao vivo).
    """
    parts = []
    async for fragment in fragments:
        if not fragment:
            continue
        parts.append(fragment)
        if on_fragment is not None:
            try:
                on_fragment(fragment)
            except Exception as e:
                # Falha do observador não é problema do pipeline
                logger.debug(f"Observador de fragmentos falhou: {e}")
    return "".join(parts)


def strip_code_fence(text: str) -> str:
    text = text.strip()
    if text.startswith("```"):
        text = _FENCE_OPEN.sub("", text, count=1)
        text = _FENCE_CLOSE.sub("", text, count=1)
    return text.strip()


def extract_json_object(text: str) -> str:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise AnalysisError(
            ErrorKind.NO_JSON_OBJECT_FOUND,
            "Não foi possível encontrar um objeto JSON válido na resposta da IA.",
        )
    return text[start:end + 1]


def assemble_response(text: str) -> Any:
    """
    Reduz o texto acumulado do stream a um valor JSON.

    Erros: EMPTY_RESPONSE (texto vazio), NO_JSON_OBJECT_FOUND (sem chaves),
    INVALID_JSON (parse falhou; a mensagem inclui o texto bruto).
    """
    if not text or not text.strip():
        raise AnalysisError(ErrorKind.EMPTY_RESPONSE, "A API não retornou nenhum conteúdo.")

    candidate = extract_json_object(strip_code_fence(text))

    # Correção pontual: o modelo às vezes escapa '>' dentro do XML embutido
    candidate = candidate.replace("\\>", ">")

    try:
        return json.loads(candidate)
    except json.JSONDecodeError as e:
        raise AnalysisError(
            ErrorKind.INVALID_JSON,
            f"A resposta da IA não é um JSON válido. Resposta recebida: {text}",
        ) from e
