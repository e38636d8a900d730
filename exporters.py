"""
Exportação dos artefatos para arquivos (não altera o estado da sessão).

- IDP -> planilha CSV "Chave,Valor" com as seções achatadas ("Seção > Campo [n]").
- RIPD (Markdown) -> documento Word via python-docx.
- BPMN/DMN -> arquivos XML com os nomes fixos de `DIAGRAM_FILENAMES`.
"""
import csv
import io
import logging
import re
from typing import Any, List, Mapping, Union

from docx import Document
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Pt, RGBColor

from schemas import DataInventory, artifact_to_wire

logger = logging.getLogger(__name__)

EMPTY_LIST_LABEL = "Nenhum item"
DOCX_FONT = "Arial"

# Nomes fixos dos downloads do visualizador de diagramas
DIAGRAM_FILENAMES = {
    "bpmn": "processo.bpmn",
    "xml": "processo.xml",
    "dmn": "decisao.dmn",
}


def format_key(key: str) -> str:
    """'nome_processo' -> 'Nome Processo'."""
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), key.replace("_", " "))


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Sim" if value else "Não"
    return str(value)


def flatten_inventory(data: Mapping, prefix: str = "") -> List[List[str]]:
    rows = []
    for key, value in data.items():
        label = f"{prefix} > {format_key(key)}" if prefix else format_key(key)
        if isinstance(value, Mapping):
            rows.extend(flatten_inventory(value, label))
        elif isinstance(value, list):
            if not value:
                rows.append([label, EMPTY_LIST_LABEL])
            for index, item in enumerate(value, start=1):
                item_label = f"{label} [{index}]"
                if isinstance(item, Mapping):
                    rows.extend(flatten_inventory(item, item_label))
                else:
                    rows.append([item_label, _cell(item)])
        else:
            rows.append([label, _cell(value)])
    return rows


def inventory_to_csv(inventory: Union[DataInventory, Mapping]) -> bytes:
    """CSV em UTF-8 com BOM (o Excel reconhece a acentuação), todas as células entre aspas."""
    data = artifact_to_wire(inventory)
    rows = [["Chave", "Valor"]] + flatten_inventory(data)

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerows(rows)
    content = buffer.getvalue().rstrip("\n")

    logger.info(f"📄 CSV do IDP gerado com {len(rows) - 1} linhas.")
    return ("\ufeff" + content).encode("utf-8")


def _add_bottom_rule(paragraph):
    p_pr = paragraph._p.get_or_add_pPr()
    borders = OxmlElement("w:pBdr")
    bottom = OxmlElement("w:bottom")
    bottom.set(qn("w:val"), "single")
    bottom.set(qn("w:sz"), "6")
    bottom.set(qn("w:space"), "1")
    bottom.set(qn("w:color"), "auto")
    borders.append(bottom)
    p_pr.append(borders)


def _style_document(doc):
    normal = doc.styles["Normal"]
    normal.font.name = DOCX_FONT
    normal.font.size = Pt(12)
    normal.font.color.rgb = RGBColor(0, 0, 0)
    normal.element.get_or_add_rPr().get_or_add_rFonts().set(qn("w:eastAsia"), DOCX_FONT)

    for style_name, size in (("Heading 1", 16), ("Heading 2", 14)):
        heading = doc.styles[style_name]
        heading.font.name = DOCX_FONT
        heading.font.size = Pt(size)
        heading.font.bold = True
        heading.font.color.rgb = RGBColor(0, 0, 0)


def impact_report_to_docx(markdown: str) -> bytes:
    """
    Converte o RIPD em Markdown simples para .docx.
    Reconhece '# ' e '## ' (títulos), '---' (linha horizontal) e linhas
    inteiras em negrito ('**...**'); o resto vira parágrafo comum.
    """
    doc = Document()
    _style_document(doc)

    for line in (markdown or "").replace("<br>", "\n").split("\n"):
        stripped = line.strip()
        if stripped.startswith("# "):
            doc.add_heading(stripped[2:], level=1)
        elif stripped.startswith("## "):
            doc.add_heading(stripped[3:], level=2)
        elif stripped == "---":
            _add_bottom_rule(doc.add_paragraph())
        elif len(stripped) >= 4 and stripped.startswith("**") and stripped.endswith("**"):
            doc.add_paragraph().add_run(stripped[2:-2]).bold = True
        else:
            doc.add_paragraph(stripped)

    buffer = io.BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


def export_filename(prefix: str, process_name: str, ext: str) -> str:
    """Ex: export_filename('IDP', 'Matrícula 2024', 'csv') -> 'IDP_Matr_cula_2024.csv'."""
    safe_name = re.sub(r"[^a-z0-9]", "_", process_name or "", flags=re.IGNORECASE)
    return f"{prefix}_{safe_name or prefix}.{ext}"
