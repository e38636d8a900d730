"""
Fixtures compartilhadas: transporte roteirizado (sem rede) e payloads de exemplo.
"""
import json

import pytest

from backend import ArtifactGenerator
from retry_policy import RetryPolicy
from schemas import AnalysisResult, ArtifactKey, validate_artifact

BPMN_XML = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    '<bpmn:definitions xmlns:bpmn="http://www.omg.org/spec/BPMN/20100524/MODEL" id="Defs_1">'
    '<bpmn:process id="Process_1"><bpmn:startEvent id="Start_1"/></bpmn:process>'
    "</bpmn:definitions>"
)

DMN_XML = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    '<dmn:Definitions xmlns:dmn="https://www.omg.org/spec/DMN/20180521/MODEL/" id="Definitions_1">'
    '<dmn:Decision id="Decision_1" name="Notificar gerente"/>'
    "</dmn:Definitions>"
)


class ScriptedTransport:
    """
    Transporte falso: cada chamada a `stream` consome o próximo roteiro.
    Um roteiro é uma lista de fragmentos (um item pode ser uma exceção, lançada
    no meio do stream) ou uma exceção lançada logo no início. O último roteiro
    se repete quando os demais acabam.
    """

    def __init__(self, *scripts):
        self.scripts = list(scripts)
        self.calls = []

    async def stream(self, parts):
        self.calls.append(list(parts))
        script = self.scripts.pop(0) if len(self.scripts) > 1 else self.scripts[0]
        if isinstance(script, BaseException):
            raise script
        for fragment in script:
            if isinstance(fragment, BaseException):
                raise fragment
            yield fragment


def as_fragments(payload, size: int = 17):
    """Serializa o payload e quebra em fragmentos, como o stream do modelo."""
    text = payload if isinstance(payload, str) else json.dumps(payload, ensure_ascii=False)
    return [text[i:i + size] for i in range(0, len(text), size)]


@pytest.fixture
def no_delay_policy():
    return RetryPolicy(max_attempts=3, delay_seconds=0)


@pytest.fixture
def make_generator(no_delay_policy):
    def factory(*scripts):
        transport = ScriptedTransport(*scripts)
        return ArtifactGenerator(transport, no_delay_policy), transport
    return factory


@pytest.fixture
def visual_payload():
    return {"processo_visual": {"bpmn_xml": BPMN_XML, "dmn_xml": None}}


@pytest.fixture
def analysis_payload():
    return {
        "analise_dados_pessoais": {
            "dados_identificados": [
                {"dado": "Nome completo", "finalidade": "Identificação do aluno", "classificacao": "Pessoal"},
                {"dado": "CPF", "finalidade": "Matrícula", "classificacao": "Pessoal"},
            ],
            "dados_sensiveis_identificados": [
                {"dado": "Laudo médico", "finalidade": "Atendimento especializado", "classificacao": "Sensível"},
            ],
        }
    }


@pytest.fixture
def inventory_payload():
    return {
        "inventario_idp": {
            "identificacao_servico": {
                "nome_processo": "Matrícula de Alunos",
                "id_referencia": "IDP-001",
                "data_criacao": "2024-05-01",
                "data_atualizacao": "2024-05-01",
            },
            "agentes_tratamento": {
                "controlador": {"nome": "IFSC", "cnpj": "11.402.887/0001-60"},
                "encarregado_dpo": {"nome": "Volnei Velleda Rodrigues"},
                "operadores": [{"nome": "Servidores do IFSC"}],
            },
            "fases_ciclo_vida": [{"operador": "Servidores do IFSC", "coleta": True, "retencao": "Sim"}],
            "categorias_dados_pessoais": [{"descricao": "Nome e CPF", "tempo_retencao": "5 anos"}],
            "categorias_dados_sensiveis": [],
            "frequencia_totalizacao": {"frequencia_tratamento": "Semestral", "quantidade_dados_pessoais": 2, "quantidade_dados_sensiveis": "1"},
            "categorias_titulares": {"categoria": "Alunos", "trata_criancas_adolescentes": False},
            "medidas_seguranca": [{"tipo_medida": "Controle de Acesso", "descricao_controles": "Login institucional"}],
        }
    }


@pytest.fixture
def full_snapshot(visual_payload, analysis_payload, inventory_payload):
    return AnalysisResult({
        ArtifactKey.VISUAL_MODEL: validate_artifact(ArtifactKey.VISUAL_MODEL, visual_payload["processo_visual"]),
        ArtifactKey.PERSONAL_DATA_ANALYSIS: validate_artifact(
            ArtifactKey.PERSONAL_DATA_ANALYSIS, analysis_payload["analise_dados_pessoais"]
        ),
        ArtifactKey.DATA_INVENTORY: validate_artifact(ArtifactKey.DATA_INVENTORY, inventory_payload["inventario_idp"]),
        ArtifactKey.AUTOMATION_SUGGESTIONS: ["Formulário online", "Assinatura digital"],
        ArtifactKey.ANALYSIS_LOG: "Log inicial.",
    })
