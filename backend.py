"""
Backend de geração dos artefatos LGPD.

`GeminiTransport` fala com o Gemini via LangChain (streaming) e
`ArtifactGenerator` monta a cadeia prompt -> stream -> JSON -> esquema
para cada artefato, além do refinamento de um artefato isolado.
"""
import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

from langchain_core.messages import HumanMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from config import DEFAULT_MODEL, Settings
from exceptions import AnalysisError, ErrorKind
from file_adapter import ContentPart, InlineData, SourceFile, file_to_input
from prompts import ADDITIONAL_CONTEXT_HEADER, PROMPT_BUILDERS, build_visual_prompt
from prompts_refine import REFINE_BUILDERS, resolve_refine_target
from response_parser import FragmentObserver, assemble_response, collect_stream
from retry_policy import DEFAULT_RETRY_POLICY, RetryPolicy, run_with_retry
from schemas import ARTIFACT_LABELS, AnalysisResult, ArtifactKey, validate_artifact

logger = logging.getLogger(__name__)


def build_content_blocks(parts: Sequence[ContentPart]) -> List[Dict[str, Any]]:
    """Converte as partes (texto / anexo) no formato de conteúdo multimodal do LangChain."""
    blocks = []
    for part in parts:
        if isinstance(part, InlineData):
            blocks.append({"type": "image_url", "image_url": part.to_data_uri()})
        else:
            blocks.append({"type": "text", "text": part})
    return blocks


def chunk_text(chunk: Any) -> str:
    # O conteúdo do chunk pode vir como string ou como lista de blocos
    content = getattr(chunk, "content", chunk)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        pieces = []
        for block in content:
            if isinstance(block, str):
                pieces.append(block)
            elif isinstance(block, dict) and block.get("type", "text") == "text":
                pieces.append(block.get("text") or "")
        return "".join(pieces)
    return ""


class GeminiTransport:
    """Streaming de texto do Gemini (gemini-2.5-flash por padrão)."""

    def __init__(self, api_key: Optional[str], model: str = DEFAULT_MODEL, temperature: float = 0.2):
        if not api_key:
            raise AnalysisError(
                ErrorKind.MISSING_API_KEY,
                "GOOGLE_API_KEY não configurada. Informe a chave na barra lateral ou no arquivo .env.",
            )
        self.model = model
        self.llm = ChatGoogleGenerativeAI(
            model=model,
            google_api_key=api_key,
            temperature=temperature,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeminiTransport":
        return cls(settings.google_api_key, model=settings.model, temperature=settings.temperature)

    async def stream(self, parts: Sequence[ContentPart]) -> AsyncIterator[str]:
        message = HumanMessage(content=build_content_blocks(parts))
        try:
            async for chunk in self.llm.astream([message]):
                text = chunk_text(chunk)
                if text:
                    yield text
        except Exception as e:
            raise AnalysisError(
                ErrorKind.TRANSPORT_FAILURE,
                f"Falha na comunicação com o modelo {self.model}: {e}",
            ) from e


class ArtifactGenerator:
    """
    Operações públicas de geração e refinamento.

    Cada operação devolve um `AnalysisResult` parcial contendo apenas a chave
    produzida; quem chama é responsável pelo merge no estado da sessão.
    O transporte é qualquer objeto com `stream(parts) -> AsyncIterator[str]`.
    """

    def __init__(self, transport, retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY):
        self.transport = transport
        self.retry_policy = retry_policy

    async def _stream_and_parse(self, parts: List[ContentPart], on_fragment: Optional[FragmentObserver], label: str) -> Any:
        async def attempt():
            text = await collect_stream(self.transport.stream(parts), on_fragment)
            return assemble_response(text)

        return await run_with_retry(attempt, self.retry_policy, label)

    def _extract_artifact(self, key: ArtifactKey, payload: Any) -> AnalysisResult:
        # Só a chave pedida é aproveitada; qualquer outra chave devolvida é descartada
        if not isinstance(payload, dict) or key.value not in payload:
            raise AnalysisError(
                ErrorKind.SCHEMA_MISMATCH,
                f"A resposta da IA não contém a chave \"{key.value}\".",
                artifact=key,
            )
        return AnalysisResult({key: validate_artifact(key, payload[key.value])})

    async def _run(self, key: ArtifactKey, parts: List[ContentPart], on_fragment: Optional[FragmentObserver], action: str) -> AnalysisResult:
        label = f"{action} de {ARTIFACT_LABELS[key]}"
        logger.info(f"🚀 Iniciando {label}...")
        logger.debug(f"Prompt de {label}: {sum(len(p) for p in parts if isinstance(p, str))} caracteres.")
        try:
            payload = await self._stream_and_parse(parts, on_fragment, label)
            partial = self._extract_artifact(key, payload)
        except AnalysisError as e:
            logger.error(f"❌ Erro em {label}: {e.message}")
            raise e.for_artifact(key)
        except Exception as e:
            logger.error(f"❌ Erro inesperado em {label}: {e}")
            raise AnalysisError(
                ErrorKind.TRANSPORT_FAILURE,
                f"Falha inesperada em {label}: {e}",
                artifact=key,
            ) from e
        logger.info(f"✅ {label} concluída.")
        return partial

    # --- Geração ---

    async def generate_visual_model(
        self,
        description: str,
        file: Optional[SourceFile] = None,
        snapshot: Optional[AnalysisResult] = None,
        on_fragment: Optional[FragmentObserver] = None,
    ) -> AnalysisResult:
        key = ArtifactKey.VISUAL_MODEL
        parts: List[ContentPart] = []
        if file is not None:
            # Erros do arquivo são determinísticos: não passam pelo retry
            try:
                parts.append(file_to_input(file))
            except AnalysisError as e:
                raise e.for_artifact(key)
        parts.append(build_visual_prompt(description, snapshot or AnalysisResult()))
        if description:
            parts.append(ADDITIONAL_CONTEXT_HEADER + description)
        return await self._run(key, parts, on_fragment, "Geração")

    async def _generate_from_context(self, key: ArtifactKey, description: str, snapshot: Optional[AnalysisResult], on_fragment) -> AnalysisResult:
        prompt = PROMPT_BUILDERS[key](description, snapshot or AnalysisResult())
        return await self._run(key, [prompt], on_fragment, "Geração")

    async def generate_data_analysis(self, description: str, snapshot: Optional[AnalysisResult], on_fragment: Optional[FragmentObserver] = None) -> AnalysisResult:
        return await self._generate_from_context(ArtifactKey.PERSONAL_DATA_ANALYSIS, description, snapshot, on_fragment)

    async def generate_inventory(self, description: str, snapshot: Optional[AnalysisResult], on_fragment: Optional[FragmentObserver] = None) -> AnalysisResult:
        return await self._generate_from_context(ArtifactKey.DATA_INVENTORY, description, snapshot, on_fragment)

    async def generate_impact_report(self, description: str, snapshot: Optional[AnalysisResult], on_fragment: Optional[FragmentObserver] = None) -> AnalysisResult:
        return await self._generate_from_context(ArtifactKey.IMPACT_REPORT_DRAFT, description, snapshot, on_fragment)

    async def generate_suggestions(self, description: str, snapshot: Optional[AnalysisResult], on_fragment: Optional[FragmentObserver] = None) -> AnalysisResult:
        return await self._generate_from_context(ArtifactKey.AUTOMATION_SUGGESTIONS, description, snapshot, on_fragment)

    async def generate_log(self, description: str, snapshot: Optional[AnalysisResult], on_fragment: Optional[FragmentObserver] = None) -> AnalysisResult:
        return await self._generate_from_context(ArtifactKey.ANALYSIS_LOG, description, snapshot, on_fragment)

    async def generate(
        self,
        key,
        description: str,
        snapshot: Optional[AnalysisResult] = None,
        file: Optional[SourceFile] = None,
        on_fragment: Optional[FragmentObserver] = None,
    ) -> AnalysisResult:
        key = ArtifactKey(key)
        if key == ArtifactKey.VISUAL_MODEL:
            return await self.generate_visual_model(description, file, snapshot, on_fragment)
        return await self._generate_from_context(key, description, snapshot, on_fragment)

    # --- Refinamento ---

    async def refine(
        self,
        key,
        snapshot: AnalysisResult,
        correction: str,
        on_fragment: Optional[FragmentObserver] = None,
    ) -> AnalysisResult:
        """Regenera só o artefato `key` aplicando a correção; as demais chaves ficam de fora."""
        target = resolve_refine_target(key)
        prompt = REFINE_BUILDERS[target](snapshot, correction)
        return await self._run(target, [prompt], on_fragment, "Refinamento")


def build_generator(settings: Settings) -> ArtifactGenerator:
    return ArtifactGenerator(GeminiTransport.from_settings(settings), settings.retry_policy)

