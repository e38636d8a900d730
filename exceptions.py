from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    TRANSPORT_FAILURE = "transport_failure"
    EMPTY_RESPONSE = "empty_response"
    NO_JSON_OBJECT_FOUND = "no_json_object_found"
    INVALID_JSON = "invalid_json"
    UNSUPPORTED_MIME_TYPE = "unsupported_mime_type"
    EMPTY_ARCHIVE = "empty_archive"
    CORRUPT_ARCHIVE = "corrupt_archive"
    REFINEMENT_TARGET_UNSUPPORTED = "refinement_target_unsupported"
    SCHEMA_MISMATCH = "schema_mismatch"
    MISSING_API_KEY = "missing_api_key"


class AnalysisError(Exception):
    """
    Erro único do pipeline de geração/refinamento.
    O `kind` identifica a etapa que falhou; `artifact` é preenchido quando o erro
    é atribuído a um artefato específico (ex: "processo_visual").
    """

    def __init__(self, kind: ErrorKind, message: str, artifact: Optional[str] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.artifact = getattr(artifact, "value", artifact)

    def for_artifact(self, artifact: str) -> "AnalysisError":
        """Marca o erro com a chave do artefato (mantém o mesmo objeto)."""
        if self.artifact is None:
            self.artifact = getattr(artifact, "value", artifact)
        return self

    def __str__(self):
        if self.artifact:
            return f"[{self.artifact}] {self.message}"
        return self.message
