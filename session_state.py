"""
Estado de uma sessão de análise (um processo por vez).

`AnalysisSession` é o único lugar mutável: guarda a descrição, o arquivo,
o snapshot atual dos artefatos e, por artefato, o status de geração, o de
refinamento, a última mensagem de erro e o "pensamento" (fragmentos do stream).
As operações do `ArtifactGenerator` recebem um snapshot imutável e o merge
acontece aqui, depois que a operação termina.
"""
import logging
from enum import Enum
from typing import Dict, List, Optional

from exceptions import AnalysisError
from file_adapter import SourceFile
from schemas import ARTIFACT_LABELS, ARTIFACT_ORDER, AnalysisResult, ArtifactKey, VisualModel

logger = logging.getLogger(__name__)

EMPTY_INPUT_MESSAGE = "Por favor, descreva o processo ou envie um arquivo."

# Canal de "pensamento" compartilhado pelos refinamentos
REFINING_CHANNEL = "refining"


def _error_message(error: Exception) -> str:
    # Qualquer falha deixa o artefato em "errored", nunca preso em andamento
    if isinstance(error, AnalysisError):
        return error.message
    return f"Erro inesperado: {error}"


class ArtifactStatus(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    REFINING = "refining"
    DONE = "done"
    ERRORED = "errored"


class AnalysisSession:
    def __init__(self):
        self._epoch = 0
        self.reset()

    def reset(self):
        """Descarta tudo. Operações ainda em andamento terão o resultado ignorado."""
        self._epoch += 1
        self.description: str = ""
        self.source_file: Optional[SourceFile] = None
        self.result = AnalysisResult()
        self.generation_status: Dict[ArtifactKey, ArtifactStatus] = {k: ArtifactStatus.IDLE for k in ARTIFACT_ORDER}
        self.refinement_status: Dict[ArtifactKey, ArtifactStatus] = {k: ArtifactStatus.IDLE for k in ARTIFACT_ORDER}
        self.errors: Dict[str, str] = {}
        self.thinking: Dict[str, List[str]] = {k.value: [] for k in ARTIFACT_ORDER}
        self.thinking[REFINING_CHANNEL] = []

    def start(self, description: str, source_file: Optional[SourceFile] = None):
        """Nova análise: valida a entrada e reinicia a sessão antes do primeiro passo."""
        description = (description or "").strip()
        if not description and source_file is None:
            raise ValueError(EMPTY_INPUT_MESSAGE)
        self.reset()
        self.description = description
        self.source_file = source_file
        logger.info(f"🚀 Nova análise iniciada (arquivo: {source_file.name if source_file else 'nenhum'}).")

    @property
    def has_results(self) -> bool:
        return len(self.result) > 0

    def is_busy(self, key) -> bool:
        key = ArtifactKey(key)
        return (
            self.generation_status[key] == ArtifactStatus.GENERATING
            or self.refinement_status[key] == ArtifactStatus.REFINING
        )

    def thinking_text(self, channel) -> str:
        return "".join(self.thinking.get(getattr(channel, "value", channel), []))

    def _observer(self, channel: str, epoch: int, live=None):
        def on_fragment(fragment: str):
            if epoch == self._epoch:
                self.thinking[channel].append(fragment)
                if live is not None:
                    live(self.thinking_text(channel))
        return on_fragment

    def merge(self, partial: AnalysisResult):
        # last-write-wins por chave
        self.result = self.result.merged(partial)

    async def run_generation(self, generator, key, live=None) -> bool:
        """
        Gera um artefato a partir do snapshot atual e faz o merge.
        Devolve False em caso de erro (mensagem em `errors[key]`) ou se a
        sessão foi reiniciada durante a chamada.
        """
        key = ArtifactKey(key)
        epoch = self._epoch
        snapshot = self.result
        self.generation_status[key] = ArtifactStatus.GENERATING
        self.errors.pop(key.value, None)
        self.thinking[key.value] = []

        try:
            partial = await generator.generate(
                key,
                self.description,
                snapshot,
                file=self.source_file if key == ArtifactKey.VISUAL_MODEL else None,
                on_fragment=self._observer(key.value, epoch, live),
            )
        except Exception as e:
            if epoch != self._epoch:
                return False
            message = _error_message(e)
            self.generation_status[key] = ArtifactStatus.ERRORED
            self.errors[key.value] = message
            logger.warning(f"⚠️ {ARTIFACT_LABELS[key]} falhou: {message}")
            return False

        if epoch != self._epoch:
            logger.info(f"Resultado de {ARTIFACT_LABELS[key]} descartado (sessão reiniciada).")
            return False
        self.merge(partial)
        self.generation_status[key] = ArtifactStatus.DONE
        return True

    async def run_refinement(self, generator, key, correction: str, live=None) -> bool:
        """Refina um único artefato; o artefato anterior fica intacto se falhar."""
        epoch = self._epoch
        try:
            target = ArtifactKey(key)
        except ValueError:
            target = None
        label = getattr(key, "value", key)

        if target is not None:
            self.refinement_status[target] = ArtifactStatus.REFINING
        self.errors.pop(label, None)
        self.thinking[REFINING_CHANNEL] = []

        try:
            partial = await generator.refine(
                key,
                self.result,
                correction,
                on_fragment=self._observer(REFINING_CHANNEL, epoch, live),
            )
        except Exception as e:
            if epoch != self._epoch:
                return False
            message = _error_message(e)
            if target is not None:
                self.refinement_status[target] = ArtifactStatus.ERRORED
            self.errors[label] = message
            logger.warning(f"⚠️ Refinamento de '{label}' falhou: {message}")
            return False

        if epoch != self._epoch:
            return False
        self.merge(partial)
        self.refinement_status[target] = ArtifactStatus.DONE
        return True

    def apply_diagram_edit(self, diagram_xml: str):
        """Grava de volta o XML editado no diagrama, mantendo o DMN."""
        current = self.result.visual_model
        if current is None:
            updated = VisualModel(diagram_xml=diagram_xml, decision_xml=None)
        else:
            updated = current.model_copy(update={"diagram_xml": diagram_xml})
        self.merge(AnalysisResult({ArtifactKey.VISUAL_MODEL: updated}))
