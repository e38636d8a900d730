import csv
import io
import zipfile

from docx import Document

from exporters import (
    DIAGRAM_FILENAMES,
    EMPTY_LIST_LABEL,
    export_filename,
    flatten_inventory,
    format_key,
    impact_report_to_docx,
    inventory_to_csv,
)

REPORT = (
    "# RELATÓRIO DE IMPACTO À PROTEÇÃO DE DADOS PESSOAIS\n"
    "## 1. IDENTIFICAÇÃO DOS AGENTES\n"
    "**Controlador**\n"
    "Instituto Federal de Santa Catarina<br>CNPJ 11.402.887/0001-60\n"
    "---\n"
    "Texto final."
)


def test_format_key():
    assert format_key("nome_processo") == "Nome Processo"
    assert format_key("encarregado_dpo") == "Encarregado Dpo"


def test_flatten_nested_sections_and_lists():
    rows = flatten_inventory({
        "identificacao_servico": {"nome_processo": "Matrícula"},
        "fases_ciclo_vida": [{"operador": "Secretaria", "coleta": True, "eliminacao": False}],
        "contratos_ti": [],
        "observacao": None,
    })
    assert rows == [
        ["Identificacao Servico > Nome Processo", "Matrícula"],
        ["Fases Ciclo Vida [1] > Operador", "Secretaria"],
        ["Fases Ciclo Vida [1] > Coleta", "Sim"],
        ["Fases Ciclo Vida [1] > Eliminacao", "Não"],
        ["Contratos Ti", EMPTY_LIST_LABEL],
        ["Observacao", ""],
    ]


def test_flatten_list_of_scalars_is_numbered():
    assert flatten_inventory({"itens": ["a", "b"]}) == [["Itens [1]", "a"], ["Itens [2]", "b"]]


def test_inventory_csv_has_bom_header_and_quotes(full_snapshot):
    content = inventory_to_csv(full_snapshot.data_inventory)
    assert content.startswith("\ufeff".encode("utf-8"))
    text = content.decode("utf-8")[1:]
    assert text.split("\n")[0] == '"Chave","Valor"'
    assert not text.endswith("\n")

    rows = list(csv.reader(io.StringIO(text)))
    values = dict(rows[1:])
    assert values["Identificacao Servico > Nome Processo"] == "Matrícula de Alunos"
    assert values["Agentes Tratamento > Controlador > Cnpj"] == "11.402.887/0001-60"
    assert values["Fases Ciclo Vida [1] > Retencao"] == "Sim"
    assert values["Frequencia Totalizacao > Quantidade Dados Sensiveis"] == "1"
    assert values["Contratos Ti"] == EMPTY_LIST_LABEL


def test_inventory_csv_accepts_plain_dict():
    content = inventory_to_csv({"identificacao_servico": {"nome_processo": 'Com "aspas"'}})
    assert '"Identificacao Servico > Nome Processo","Com ""aspas"""' in content.decode("utf-8")


def test_impact_report_docx_structure():
    content = impact_report_to_docx(REPORT)
    assert zipfile.is_zipfile(io.BytesIO(content))

    doc = Document(io.BytesIO(content))
    paragraphs = [(p.style.name, p.text) for p in doc.paragraphs]
    assert ("Heading 1", "RELATÓRIO DE IMPACTO À PROTEÇÃO DE DADOS PESSOAIS") in paragraphs
    assert ("Heading 2", "1. IDENTIFICAÇÃO DOS AGENTES") in paragraphs

    bold = [p for p in doc.paragraphs if p.text == "Controlador"]
    assert bold and bold[0].runs[0].bold is True

    texts = [p.text for p in doc.paragraphs]
    assert "Instituto Federal de Santa Catarina" in texts
    assert "CNPJ 11.402.887/0001-60" in texts
    assert "---" not in texts
    assert doc.styles["Normal"].font.name == "Arial"


def test_impact_report_docx_horizontal_rule_has_bottom_border():
    doc = Document(io.BytesIO(impact_report_to_docx("antes\n---\ndepois")))
    rule = doc.paragraphs[1]
    assert rule.text == ""
    assert "w:pBdr" in rule._p.xml


def test_export_filename_sanitizes_process_name():
    assert export_filename("IDP", "Matrícula 2024", "csv") == "IDP_Matr_cula_2024.csv"
    assert export_filename("RIPD", "", "docx") == "RIPD_RIPD.docx"


def test_diagram_download_names():
    assert DIAGRAM_FILENAMES == {"bpmn": "processo.bpmn", "xml": "processo.xml", "dmn": "decisao.dmn"}
