# PROMPTS DE REFINAMENTO (UM ARTEFATO POR VEZ)
# O JSON completo vai como contexto, mas o modelo só pode devolver a chave alvo.

from typing import Callable, Dict, Mapping, Optional

from exceptions import AnalysisError, ErrorKind
from prompts import IFSC_CONTEXT, snapshot_json
from prompts_diagram import REFINE_DIAGRAM_RULES
from schemas import ArtifactKey


def build_base_refine_prompt(snapshot: Optional[Mapping], correction: str, target: ArtifactKey, instructions: str) -> str:
    return f"""
# ROLE
Você é um especialista em conformidade LGPD e modelagem de processos do sez.iO, focado em refinar um artefato específico com base no feedback do usuário.

# CONTEXT
O usuário forneceu uma análise de processo gerada anteriormente (no formato JSON) e uma instrução de correção em linguagem natural. Sua tarefa é interpretar a correção e aplicá-la APENAS ao artefato alvo, gerando uma nova versão SOMENTE desse artefato. Use o restante do JSON como contexto, mas NÃO o modifique.
{IFSC_CONTEXT}
# JSON ANTERIOR (PARA CONTEXTO)
```json
{snapshot_json(snapshot)}
```

# INSTRUÇÃO DE CORREÇÃO DO USUÁRIO
"{correction}"

# TASK
1. Analise o JSON de contexto e a instrução de correção.
2. Regenere a nova versão do artefato **{target.value}**.
{instructions}
# OUTPUT_FORMAT
Sua resposta DEVE SER ESTRITAMENTE um único objeto JSON válido, contendo APENAS a chave do artefato corrigido: "{target.value}".
"""


REFINE_ANALYSIS_INSTRUCTIONS = """
- A estrutura do objeto "analise_dados_pessoais" DEVE ser EXATAMENTE a mesma da geração original, contendo as chaves "dados_identificados" e "dados_sensiveis_identificados".
- Cada item nos arrays DEVE ter as chaves "dado", "finalidade", e "classificacao" ("Pessoal" ou "Sensível").
"""

REFINE_INVENTORY_INSTRUCTIONS = """
- A estrutura do objeto "inventario_idp" DEVE ser EXATAMENTE a mesma da geração original. Preencha todos os campos conforme o novo contexto da correção.
"""

REFINE_RIPD_INSTRUCTIONS = """
- Regenere o relatório "rascunho_ripd" em formato Markdown.
- Se a correção resultar em um processo de baixo risco (sem dados sensíveis ou de crianças/adolescentes), o valor da chave "rascunho_ripd" DEVE ser `null`.
"""

REFINE_SUGGESTIONS_INSTRUCTIONS = """
- O valor de "sugestoes_automacao" DEVE ser um array de strings.
"""

REFINE_LOG_INSTRUCTIONS = """
- Gere um novo log de análise que reflita o processo após a correção.
- O valor de "log_analise" DEVE ser uma única string.
"""


def build_refine_visual_prompt(snapshot: Optional[Mapping], correction: str) -> str:
    instructions = REFINE_DIAGRAM_RULES + '\n- O valor de "processo_visual" DEVE conter as chaves "bpmn_xml" e "dmn_xml".\n'
    return build_base_refine_prompt(snapshot, correction, ArtifactKey.VISUAL_MODEL, instructions)


def build_refine_analysis_prompt(snapshot: Optional[Mapping], correction: str) -> str:
    return build_base_refine_prompt(snapshot, correction, ArtifactKey.PERSONAL_DATA_ANALYSIS, REFINE_ANALYSIS_INSTRUCTIONS)


def build_refine_inventory_prompt(snapshot: Optional[Mapping], correction: str) -> str:
    return build_base_refine_prompt(snapshot, correction, ArtifactKey.DATA_INVENTORY, REFINE_INVENTORY_INSTRUCTIONS)


def build_refine_ripd_prompt(snapshot: Optional[Mapping], correction: str) -> str:
    return build_base_refine_prompt(snapshot, correction, ArtifactKey.IMPACT_REPORT_DRAFT, REFINE_RIPD_INSTRUCTIONS)


def build_refine_suggestions_prompt(snapshot: Optional[Mapping], correction: str) -> str:
    return build_base_refine_prompt(snapshot, correction, ArtifactKey.AUTOMATION_SUGGESTIONS, REFINE_SUGGESTIONS_INSTRUCTIONS)


def build_refine_log_prompt(snapshot: Optional[Mapping], correction: str) -> str:
    return build_base_refine_prompt(snapshot, correction, ArtifactKey.ANALYSIS_LOG, REFINE_LOG_INSTRUCTIONS)


REFINE_BUILDERS: Dict[ArtifactKey, Callable[[Optional[Mapping], str], str]] = {
    ArtifactKey.VISUAL_MODEL: build_refine_visual_prompt,
    ArtifactKey.PERSONAL_DATA_ANALYSIS: build_refine_analysis_prompt,
    ArtifactKey.DATA_INVENTORY: build_refine_inventory_prompt,
    ArtifactKey.IMPACT_REPORT_DRAFT: build_refine_ripd_prompt,
    ArtifactKey.AUTOMATION_SUGGESTIONS: build_refine_suggestions_prompt,
    ArtifactKey.ANALYSIS_LOG: build_refine_log_prompt,
}


def resolve_refine_target(target) -> ArtifactKey:
    """Converte a chave pedida em ArtifactKey; chave desconhecida não é refinável."""
    try:
        key = ArtifactKey(target)
    except ValueError:
        key = None
    if key not in REFINE_BUILDERS:
        raise AnalysisError(
            ErrorKind.REFINEMENT_TARGET_UNSUPPORTED,
            f"O artefato '{target}' não pode ser refinado.",
            artifact=str(getattr(target, "value", target)),
        )
    return key


def build_refine_prompt(target, snapshot: Optional[Mapping], correction: str) -> str:
    key = resolve_refine_target(target)
    return REFINE_BUILDERS[key](snapshot, correction)
