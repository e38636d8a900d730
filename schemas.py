"""
Esquemas dos artefatos de conformidade LGPD e o snapshot imutável `AnalysisResult`.

As chaves JSON (wire) seguem o vocabulário em português usado nos prompts
("processo_visual", "inventario_idp", ...). Os atributos Python são em inglês.
"""
import json
import re
import unicodedata
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from exceptions import AnalysisError, ErrorKind


class ArtifactKey(str, Enum):
    VISUAL_MODEL = "processo_visual"
    PERSONAL_DATA_ANALYSIS = "analise_dados_pessoais"
    DATA_INVENTORY = "inventario_idp"
    IMPACT_REPORT_DRAFT = "rascunho_ripd"
    AUTOMATION_SUGGESTIONS = "sugestoes_automacao"
    ANALYSIS_LOG = "log_analise"


# Ordem causal das etapas (cada uma usa as anteriores como contexto)
ARTIFACT_ORDER = [
    ArtifactKey.VISUAL_MODEL,
    ArtifactKey.PERSONAL_DATA_ANALYSIS,
    ArtifactKey.DATA_INVENTORY,
    ArtifactKey.IMPACT_REPORT_DRAFT,
    ArtifactKey.AUTOMATION_SUGGESTIONS,
    ArtifactKey.ANALYSIS_LOG,
]

ARTIFACT_LABELS = {
    ArtifactKey.VISUAL_MODEL: "Processo (BPMN/DMN)",
    ArtifactKey.PERSONAL_DATA_ANALYSIS: "Análise de Dados",
    ArtifactKey.DATA_INVENTORY: "Inventário de Dados (IDP)",
    ArtifactKey.IMPACT_REPORT_DRAFT: "Relatório de Impacto (RIPD)",
    ArtifactKey.AUTOMATION_SUGGESTIONS: "Sugestões",
    ArtifactKey.ANALYSIS_LOG: "Log da IA",
}


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


# --- Processo Visual ---

class VisualModel(_WireModel):
    diagram_xml: str = Field(alias="bpmn_xml")
    decision_xml: Optional[str] = Field(default=None, alias="dmn_xml")

    @field_validator("decision_xml", mode="before")
    @classmethod
    def _blank_decision_is_null(cls, value):
        # DMN vazio equivale a "sem decisão"
        if isinstance(value, str) and not value.strip():
            return None
        return value


# --- Análise de Dados Pessoais ---

class DataClassification(str, Enum):
    PERSONAL = "Pessoal"
    SENSITIVE = "Sensível"


def _strip_accents(text: str) -> str:
    return "".join(c for c in unicodedata.normalize("NFKD", text) if not unicodedata.combining(c))


class DataItem(_WireModel):
    data_label: str = Field(alias="dado")
    purpose: str = Field(default="", alias="finalidade")
    classification: DataClassification = Field(alias="classificacao")

    @field_validator("classification", mode="before")
    @classmethod
    def _normalize_classification(cls, value):
        if isinstance(value, str):
            normalized = _strip_accents(value).strip().lower()
            if normalized.startswith("sensiv") or normalized == "sensitive":
                return DataClassification.SENSITIVE
            if normalized in ("pessoal", "personal"):
                return DataClassification.PERSONAL
        return value


class PersonalDataAnalysis(_WireModel):
    identified: List[DataItem] = Field(default_factory=list, alias="dados_identificados")
    sensitive_identified: List[DataItem] = Field(default_factory=list, alias="dados_sensiveis_identificados")


# --- Inventário de Dados Pessoais (IDP) ---
# Campos ausentes recebem valores vazios para que um inventário parcial ainda valide.

class _Section(_WireModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="allow")


_TRUTHY = {"sim", "s", "true", "verdadeiro", "yes", "1"}


def _lenient_bool(value):
    if isinstance(value, str):
        return _strip_accents(value).strip().lower() in _TRUTHY
    if value is None:
        return False
    return value


_LEADING_INT = re.compile(r"\s*(-?\d+)")


def _lenient_int(value):
    # Contagens: "12 dados" -> 12, "1.5" -> 1; negativos viram 0
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        value = int(match.group(1)) if match else 0
    if value is None:
        return 0
    if isinstance(value, int) and not isinstance(value, bool):
        return max(0, value)
    return value


class ServiceIdentification(_Section):
    nome_processo: str = ""
    id_referencia: str = ""
    data_criacao: str = ""
    data_atualizacao: str = ""


class Agent(_Section):
    nome: str = ""
    endereco: str = ""
    cep: str = ""
    telefone: str = ""
    email: str = ""


class Controller(Agent):
    natureza_juridica: str = ""
    cnpj: str = ""


class DataProtectionOfficer(_Section):
    nome: str = ""
    contato: str = ""
    previsao_legal: str = ""


class ProcessingAgents(_Section):
    controlador: Controller = Field(default_factory=Controller)
    encarregado_dpo: DataProtectionOfficer = Field(default_factory=DataProtectionOfficer)
    operadores: List[Agent] = Field(default_factory=list)


class LifecyclePhase(_Section):
    operador: str = ""
    coleta: bool = False
    retencao: bool = False
    processamento: bool = False
    compartilhamento: bool = False
    eliminacao: bool = False

    _lenient = field_validator("coleta", "retencao", "processamento", "compartilhamento", "eliminacao", mode="before")(_lenient_bool)


class FlowDescription(_Section):
    coleta: str = ""
    armazenamento: str = ""
    uso: str = ""
    compartilhamento: str = ""
    eliminacao: str = ""


class ScopeAndNature(_Section):
    abrangencia_geografica: str = ""
    fonte_dados: str = ""


class ProcessingPurpose(_Section):
    hipotese_tratamento: str = ""
    finalidade: str = ""
    previsao_legal: str = ""
    resultados_pretendidos: str = ""
    beneficios_esperados: str = ""


class DataCategory(_Section):
    descricao: str = ""
    tempo_retencao: str = ""
    fonte_retencao: str = ""


class FrequencyTotals(_Section):
    frequencia_tratamento: str = ""
    quantidade_dados_pessoais: int = 0
    quantidade_dados_sensiveis: int = 0

    _lenient = field_validator("quantidade_dados_pessoais", "quantidade_dados_sensiveis", mode="before")(_lenient_int)


class DataSubjects(_Section):
    categoria: str = ""
    descricao: str = ""
    trata_criancas_adolescentes: bool = False
    trata_outro_grupo_vulneravel: bool = False

    _lenient = field_validator("trata_criancas_adolescentes", "trata_outro_grupo_vulneravel", mode="before")(_lenient_bool)


class DataSharing(_Section):
    instituicao: str = ""
    dados_compartilhados: str = ""
    finalidade: str = ""


class SecurityMeasure(_Section):
    tipo_medida: str = ""
    descricao_controles: str = ""


class InternationalTransfer(_Section):
    organizacao: str = ""
    pais: str = ""
    dados_transferidos: str = ""
    tipo_garantia: str = ""


class ItContract(_Section):
    numero_processo: str = ""
    objeto_contrato: str = ""
    email_gestor: str = ""


class UpdatePolicy(_Section):
    politica_atualizacao: str = ""
    periodicidade: str = ""


class DataInventory(_Section):
    identificacao_servico: ServiceIdentification = Field(default_factory=ServiceIdentification)
    agentes_tratamento: ProcessingAgents = Field(default_factory=ProcessingAgents)
    fases_ciclo_vida: List[LifecyclePhase] = Field(default_factory=list)
    descricao_fluxo_tratamento: FlowDescription = Field(default_factory=FlowDescription)
    escopo_natureza_dados: ScopeAndNature = Field(default_factory=ScopeAndNature)
    finalidade_tratamento: ProcessingPurpose = Field(default_factory=ProcessingPurpose)
    categorias_dados_pessoais: List[DataCategory] = Field(default_factory=list)
    categorias_dados_sensiveis: List[DataCategory] = Field(default_factory=list)
    frequencia_totalizacao: FrequencyTotals = Field(default_factory=FrequencyTotals)
    categorias_titulares: DataSubjects = Field(default_factory=DataSubjects)
    compartilhamento_dados: List[DataSharing] = Field(default_factory=list)
    medidas_seguranca: List[SecurityMeasure] = Field(default_factory=list)
    transferencia_internacional: List[InternationalTransfer] = Field(default_factory=list)
    contratos_ti: List[ItContract] = Field(default_factory=list)
    manter_atualizacao: UpdatePolicy = Field(default_factory=UpdatePolicy)


# Esquema por chave de artefato (RIPD e log são texto; RIPD aceita null)
ARTIFACT_ADAPTERS: Dict[ArtifactKey, TypeAdapter] = {
    ArtifactKey.VISUAL_MODEL: TypeAdapter(VisualModel),
    ArtifactKey.PERSONAL_DATA_ANALYSIS: TypeAdapter(PersonalDataAnalysis),
    ArtifactKey.DATA_INVENTORY: TypeAdapter(DataInventory),
    ArtifactKey.IMPACT_REPORT_DRAFT: TypeAdapter(Optional[str]),
    ArtifactKey.AUTOMATION_SUGGESTIONS: TypeAdapter(List[str]),
    ArtifactKey.ANALYSIS_LOG: TypeAdapter(str),
}


def validate_artifact(key: ArtifactKey, payload: Any) -> Any:
    """
    Valida o JSON parseado de um artefato contra o seu esquema.
    Levanta AnalysisError(SCHEMA_MISMATCH) marcado com a chave do artefato.
    """
    key = ArtifactKey(key)
    try:
        return ARTIFACT_ADAPTERS[key].validate_python(payload)
    except ValidationError as e:
        raise AnalysisError(
            ErrorKind.SCHEMA_MISMATCH,
            f"O artefato '{key.value}' retornado pela IA não segue a estrutura esperada: {e}",
            artifact=key,
        ) from e


def artifact_to_wire(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    return value


class AnalysisResult(Mapping):
    """
    Snapshot imutável dos artefatos de uma sessão.

    Chave ausente = ainda não gerado; valor None = gerado e não aplicável
    (ex: RIPD quando o risco não é alto). `merged` devolve um novo snapshot,
    substituindo cada artefato por inteiro (last-write-wins por chave).
    """

    def __init__(self, artifacts: Optional[Mapping] = None):
        self._artifacts: Dict[ArtifactKey, Any] = {}
        for key, value in (artifacts or {}).items():
            self._artifacts[ArtifactKey(key)] = value

    def __getitem__(self, key) -> Any:
        try:
            return self._artifacts[ArtifactKey(key)]
        except ValueError:
            raise KeyError(key)

    def __iter__(self) -> Iterator[ArtifactKey]:
        # Sempre na ordem causal, para um JSON de contexto estável
        return iter([k for k in ARTIFACT_ORDER if k in self._artifacts])

    def __len__(self) -> int:
        return len(self._artifacts)

    def __contains__(self, key) -> bool:
        try:
            return ArtifactKey(key) in self._artifacts
        except ValueError:
            return False

    def __repr__(self):
        return f"AnalysisResult({[k.value for k in self]})"

    @property
    def visual_model(self) -> Optional[VisualModel]:
        return self._artifacts.get(ArtifactKey.VISUAL_MODEL)

    @property
    def personal_data_analysis(self) -> Optional[PersonalDataAnalysis]:
        return self._artifacts.get(ArtifactKey.PERSONAL_DATA_ANALYSIS)

    @property
    def data_inventory(self) -> Optional[DataInventory]:
        return self._artifacts.get(ArtifactKey.DATA_INVENTORY)

    @property
    def impact_report_draft(self) -> Optional[str]:
        return self._artifacts.get(ArtifactKey.IMPACT_REPORT_DRAFT)

    @property
    def automation_suggestions(self) -> Optional[List[str]]:
        return self._artifacts.get(ArtifactKey.AUTOMATION_SUGGESTIONS)

    @property
    def analysis_log(self) -> Optional[str]:
        return self._artifacts.get(ArtifactKey.ANALYSIS_LOG)

    def merged(self, partial: Mapping) -> "AnalysisResult":
        artifacts = dict(self._artifacts)
        for key, value in partial.items():
            artifacts[ArtifactKey(key)] = value
        return AnalysisResult(artifacts)

    def without(self, key) -> "AnalysisResult":
        artifacts = dict(self._artifacts)
        artifacts.pop(ArtifactKey(key), None)
        return AnalysisResult(artifacts)

    def to_wire(self) -> Dict[str, Any]:
        return {key.value: artifact_to_wire(self._artifacts[key]) for key in self}

    def to_json(self) -> str:
        return json.dumps(self.to_wire(), ensure_ascii=False, indent=2)

    @classmethod
    def from_wire(cls, data: Mapping) -> "AnalysisResult":
        """Constrói um snapshot a partir de JSON (chaves desconhecidas são ignoradas)."""
        artifacts = {}
        for key in ARTIFACT_ORDER:
            if key.value in data:
                artifacts[key] = validate_artifact(key, data[key.value])
        return cls(artifacts)
