"""
Conversão do arquivo enviado pelo usuário em entrada para o modelo.

- Imagens viram anexo binário (base64) enviado junto com o prompt.
- Arquivos de modelagem em texto (.bpmn, .xml, .diag, .dmn) são colados como texto.
- Projetos Bizagi (.bpm) são zips: descompactamos em memória e juntamos os
  .diag/.xml internos num único bloco de texto.
"""
import base64
import io
import logging
import mimetypes
import os
import zipfile
import zlib
from dataclasses import dataclass
from typing import Any, Union

from exceptions import AnalysisError, ErrorKind

logger = logging.getLogger(__name__)

TEXT_MODEL_EXTENSIONS = (".bpmn", ".xml", ".diag", ".dmn")
ARCHIVE_EXTENSION = ".bpm"
ARCHIVE_ENTRY_EXTENSIONS = (".diag", ".xml")

SUPPORTED_UPLOAD_TYPES = ["png", "jpg", "jpeg", "gif", "webp", "bpmn", "xml", "diag", "dmn", "bpm"]

_BOM = "\ufeff"


@dataclass(frozen=True)
class SourceFile:
    name: str
    data: bytes
    mime_type: str = ""

    @classmethod
    def from_upload(cls, uploaded: Any) -> "SourceFile":
        """Aceita o objeto do st.file_uploader (name, type, getvalue())."""
        return cls(
            name=uploaded.name,
            data=uploaded.getvalue(),
            mime_type=getattr(uploaded, "type", "") or "",
        )

    @property
    def extension(self) -> str:
        return os.path.splitext(self.name.lower())[1]

    @property
    def resolved_mime_type(self) -> str:
        if self.mime_type:
            return self.mime_type
        guessed, _ = mimetypes.guess_type(self.name)
        return guessed or ""

    @property
    def is_image(self) -> bool:
        return self.resolved_mime_type.startswith("image/")


@dataclass(frozen=True)
class InlineData:
    """Anexo binário (imagem) já codificado em base64."""

    mime_type: str
    data: str

    def to_data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


# Uma parte de conteúdo é texto puro ou um anexo inline
ContentPart = Union[str, InlineData]


def _decode_text(raw: bytes) -> str:
    text = raw.decode("utf-8", errors="replace")
    if text.startswith(_BOM):
        text = text[len(_BOM):]
    return text


def image_to_part(file: SourceFile) -> InlineData:
    """Caminho exclusivo de imagens; qualquer outro tipo é recusado."""
    if not file.is_image:
        raise AnalysisError(
            ErrorKind.UNSUPPORTED_MIME_TYPE,
            f'O arquivo "{file.name}" não é uma imagem suportada (tipo: {file.resolved_mime_type or "desconhecido"}).',
        )
    return InlineData(
        mime_type=file.resolved_mime_type,
        data=base64.b64encode(file.data).decode("ascii"),
    )


def unpack_bizagi_project(file: SourceFile) -> str:
    try:
        archive = zipfile.ZipFile(io.BytesIO(file.data))
    except (zipfile.BadZipFile, OSError) as e:
        raise AnalysisError(
            ErrorKind.CORRUPT_ARCHIVE,
            "Falha ao processar o arquivo de projeto Bizagi (.bpm). "
            f"Certifique-se de que o arquivo não está corrompido. Detalhes: {e}",
        ) from e

    sections = []
    with archive:
        for entry in archive.infolist():
            if entry.is_dir() or not entry.filename.lower().endswith(ARCHIVE_ENTRY_EXTENSIONS):
                continue
            try:
                content = _decode_text(archive.read(entry))
            except (zipfile.BadZipFile, OSError, zlib.error) as e:
                raise AnalysisError(
                    ErrorKind.CORRUPT_ARCHIVE,
                    f"Falha ao ler '{entry.filename}' dentro do projeto .bpm. Detalhes: {e}",
                ) from e
            sections.append(
                f"\n\n--- INÍCIO DO ARQUIVO: {entry.filename} ---\n\n{content}"
                f"\n\n--- FIM DO ARQUIVO: {entry.filename} ---"
            )

    if not sections:
        raise AnalysisError(
            ErrorKind.EMPTY_ARCHIVE,
            "Nenhum arquivo de diagrama (.diag) ou de configuração (.xml) foi encontrado dentro do projeto .bpm.",
        )

    logger.info(f"📦 Projeto Bizagi '{file.name}': {len(sections)} arquivo(s) extraído(s).")
    return "CONTEÚDO DO PROJETO BIZAGI (.bpm):\n" + "".join(sections)


def file_to_input(file: SourceFile) -> ContentPart:
    """
    Decide como o arquivo entra no prompt: anexo (imagem) ou texto inline.
    Levanta AnalysisError para tipos não suportados e .bpm vazio/corrompido.
    """
    ext = file.extension

    if ext == ARCHIVE_EXTENSION:
        return unpack_bizagi_project(file)

    if ext in TEXT_MODEL_EXTENSIONS:
        return _decode_text(file.data)

    if file.is_image:
        return image_to_part(file)

    raise AnalysisError(
        ErrorKind.UNSUPPORTED_MIME_TYPE,
        f'Não foi possível usar o arquivo "{file.name}". '
        "Verifique se o arquivo é suportado (imagem, .bpmn, .xml, .diag, .dmn, .bpm).",
    )
