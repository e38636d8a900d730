import logging
from typing import List, Optional, TypedDict

from langgraph.graph import StateGraph, END

from schemas import ARTIFACT_LABELS, ARTIFACT_ORDER, ArtifactKey
from session_state import AnalysisSession

logger = logging.getLogger(__name__)

# Nome do nó no grafo para cada artefato (mesma ordem causal)
NODE_NAMES = {
    ArtifactKey.VISUAL_MODEL: "visual",
    ArtifactKey.PERSONAL_DATA_ANALYSIS: "analysis",
    ArtifactKey.DATA_INVENTORY: "inventory",
    ArtifactKey.IMPACT_REPORT_DRAFT: "ripd",
    ArtifactKey.AUTOMATION_SUGGESTIONS: "suggestions",
    ArtifactKey.ANALYSIS_LOG: "log",
}


# Define State
class PipelineState(TypedDict):
    completed: List[str]
    failed_key: Optional[str]
    logs: List[str]


def _make_node(session: AnalysisSession, generator, key: ArtifactKey, position: int, total: int):
    label = ARTIFACT_LABELS[key]

    async def node(state: PipelineState):
        log = f"🔄 [{position}/{total}] {label}..."
        ok = await session.run_generation(generator, key)
        if not ok:
            error = session.errors.get(key.value, "operação descartada")
            return {
                "failed_key": key.value,
                "logs": state["logs"] + [f"❌ Erro em {label}: {error}"],
            }
        if key in session.result and session.result[key] is None:
            log += " (não aplicável)"
        return {
            "completed": state["completed"] + [key.value],
            "logs": state["logs"] + [log + " ✅"],
        }

    return node


def _route_after(state: PipelineState) -> str:
    # Falha encerra a cadeia: os próximos artefatos dependem deste
    return "stop" if state.get("failed_key") else "next"


def build_pipeline_graph(session: AnalysisSession, generator, keys: Optional[List[ArtifactKey]] = None):
    """
    Grafo sequencial visual -> análise -> IDP -> RIPD -> sugestões -> log.
    Cada nó gera um artefato via `session.run_generation`, de modo que o
    próximo nó já recebe o snapshot com o merge do anterior.
    """
    keys = [ArtifactKey(k) for k in (keys or ARTIFACT_ORDER)]
    workflow = StateGraph(PipelineState)

    for position, key in enumerate(keys, start=1):
        workflow.add_node(NODE_NAMES[key], _make_node(session, generator, key, position, len(keys)))

    workflow.set_entry_point(NODE_NAMES[keys[0]])

    for current, following in zip(keys, keys[1:]):
        workflow.add_conditional_edges(
            NODE_NAMES[current],
            _route_after,
            {"next": NODE_NAMES[following], "stop": END},
        )
    workflow.add_edge(NODE_NAMES[keys[-1]], END)

    return workflow.compile()


async def run_full_pipeline(session: AnalysisSession, generator, keys: Optional[List[ArtifactKey]] = None) -> PipelineState:
    """
    Gera todos os artefatos em sequência sobre a sessão já iniciada.
    Para no primeiro erro, mantendo o que já foi produzido.
    """
    app = build_pipeline_graph(session, generator, keys)
    initial_state = {"completed": [], "failed_key": None, "logs": []}

    logger.info("🚀 Iniciando geração completa dos artefatos...")
    result = await app.ainvoke(initial_state)
    if result.get("failed_key"):
        logger.warning(f"⚠️ Cadeia interrompida em '{result['failed_key']}'.")
    else:
        logger.info("✅ Todos os artefatos gerados.")
    return result
