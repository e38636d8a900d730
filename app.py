import asyncio
import json

import streamlit as st
import streamlit.components.v1 as components

from backend import build_generator
from config import configure_logging, load_settings
from exceptions import AnalysisError
from exporters import DIAGRAM_FILENAMES, export_filename, impact_report_to_docx, inventory_to_csv
from file_adapter import SUPPORTED_UPLOAD_TYPES, SourceFile
from lgpd_engine.orchestrator import run_full_pipeline
from prompts import prompt_catalog
from schemas import ARTIFACT_LABELS, ARTIFACT_ORDER, ArtifactKey
from session_state import REFINING_CHANNEL, AnalysisSession, ArtifactStatus

# Configuração da Página
st.set_page_config(
    page_title="sez.iO LGPD - Conformidade de Processos",
    page_icon="🛡️",
    layout="wide"
)

settings = load_settings()
configure_logging(settings.log_level)

BPMN_VIEWER_JS = "https://unpkg.com/bpmn-js@17.11.1/dist/bpmn-navigated-viewer.production.min.js"
DMN_VIEWER_JS = "https://unpkg.com/dmn-js@16.8.2/dist/dmn-viewer.production.min.js"
DMN_VIEWER_CSS = "https://unpkg.com/dmn-js@16.8.2/dist/assets/dmn-js-decision-table.css"

# --- CSS Personalizado ---
st.markdown("""
<style>
    .main-header {
        font-size: 2.2rem;
        color: #2f9e41;
        font-weight: 700;
    }
    .sub-header {
        font-size: 1.1rem;
        color: #34495e;
    }
</style>
""", unsafe_allow_html=True)

# Inicializa estado da sessão
if "analysis" not in st.session_state:
    st.session_state.analysis = AnalysisSession()
if "uploader_key" not in st.session_state:
    st.session_state.uploader_key = 0

session: AnalysisSession = st.session_state.analysis


def _js_string(xml: str) -> str:
    # Evita que um "</script>" dentro do XML feche a tag do componente
    return json.dumps(xml).replace("</", "<\\/")


def render_bpmn(xml: str, height: int = 520):
    components.html(f"""
    <div id="canvas" style="height:{height - 20}px;border:1px solid #ddd;border-radius:8px;background:#fff"></div>
    <script src="{BPMN_VIEWER_JS}"></script>
    <script>
      const viewer = new BpmnJS({{ container: '#canvas' }});
      viewer.importXML({_js_string(xml)})
        .then(() => viewer.get('canvas').zoom('fit-viewport'))
        .catch(err => {{
          document.getElementById('canvas').innerText = 'Erro ao renderizar o BPMN: ' + err.message;
        }});
    </script>
    """, height=height)


def render_dmn(xml: str, height: int = 420):
    components.html(f"""
    <link rel="stylesheet" href="{DMN_VIEWER_CSS}">
    <div id="dmn" style="height:{height - 20}px;border:1px solid #ddd;border-radius:8px;background:#fff;overflow:auto"></div>
    <script src="{DMN_VIEWER_JS}"></script>
    <script>
      const viewer = new DmnJS({{ container: '#dmn' }});
      viewer.importXML({_js_string(xml)})
        .catch(err => {{
          document.getElementById('dmn').innerText = 'Erro ao renderizar o DMN: ' + err.message;
        }});
    </script>
    """, height=height)


def get_generator():
    """Monta o gerador com a chave da barra lateral (ou do .env). Mostra o erro se faltar."""
    try:
        return build_generator(settings.with_api_key(google_api_key))
    except AnalysisError as e:
        st.error(e.message)
        return None


def run_step(key: ArtifactKey):
    generator = get_generator()
    if generator is None:
        return
    placeholder = st.empty()
    with st.spinner(f"Gerando {ARTIFACT_LABELS[key]}..."):
        asyncio.run(session.run_generation(generator, key, live=lambda text: placeholder.code(text[-2000:])))
    placeholder.empty()


def run_refine(key: ArtifactKey, correction: str):
    generator = get_generator()
    if generator is None:
        return
    placeholder = st.empty()
    with st.spinner(f"Refinando {ARTIFACT_LABELS[key]}..."):
        asyncio.run(session.run_refinement(generator, key, correction, live=lambda text: placeholder.code(text[-2000:])))
    placeholder.empty()


# --- SIDEBAR: Configurações ---
with st.sidebar:
    st.title("🛡️ sez.iO LGPD")

    if st.button("🗑️ Nova Análise / Limpar Tudo"):
        session.reset()
        # Força recriação do uploader mudando a key
        st.session_state.uploader_key += 1
        st.rerun()

    google_api_key = st.text_input(
        "Google API Key (Gemini):",
        type="password",
        help="Se vazio, usa GOOGLE_API_KEY do arquivo .env.",
    )
    st.caption(f"Modelo: `{settings.model}` · Tentativas: {settings.retry_attempts}")

    st.markdown("---")
    with st.expander("⚙️ Configuração de Prompts da IA"):
        for title, text in prompt_catalog():
            st.markdown(f"**{title}**")
            st.code(text, language="markdown")

# --- Entrada do Processo ---
st.markdown('<div class="main-header">Assistente de Conformidade LGPD</div>', unsafe_allow_html=True)
st.markdown(
    '<div class="sub-header">Descreva um processo do IFSC (ou envie o diagrama) e gere BPMN/DMN, '
    'Inventário de Dados (IDP), RIPD, sugestões e log de transparência.</div>',
    unsafe_allow_html=True,
)

description = st.text_area(
    "Descrição do processo",
    value=session.description,
    height=160,
    placeholder="Ex: O aluno preenche o formulário de matrícula com nome, CPF e laudo médico...",
)
uploaded_file = st.file_uploader(
    "Arquivo opcional (imagem, .bpmn, .xml, .diag, .dmn ou projeto Bizagi .bpm)",
    type=SUPPORTED_UPLOAD_TYPES,
    key=f"uploader_{st.session_state.uploader_key}",
)

col1, col2 = st.columns([1, 1])
with col1:
    analyze_btn = st.button("🚀 Analisar Processo", type="primary")
with col2:
    run_all_btn = st.button("⚡ Gerar todos os artefatos")

if analyze_btn or run_all_btn:
    source_file = SourceFile.from_upload(uploaded_file) if uploaded_file else None
    try:
        session.start(description, source_file)
    except ValueError as e:
        st.error(str(e))
    else:
        if analyze_btn:
            run_step(ArtifactKey.VISUAL_MODEL)
        else:
            generator = get_generator()
            if generator is not None:
                status_box = st.status("🤖 Gerando a cadeia completa de artefatos...", expanded=True)
                pipeline_state = asyncio.run(run_full_pipeline(session, generator))
                for log in pipeline_state["logs"]:
                    status_box.write(log)
                if pipeline_state.get("failed_key"):
                    status_box.update(label="❌ Cadeia interrompida", state="error")
                else:
                    status_box.update(label="✅ Todos os artefatos gerados!", state="complete", expanded=False)

if not session.has_results and not session.errors:
    st.info("👆 Descreva o processo ou envie um arquivo para começar.")
    st.stop()

# --- Resultados (uma aba por artefato) ---
tabs = st.tabs([ARTIFACT_LABELS[k] for k in ARTIFACT_ORDER])
result = session.result

for tab, key in zip(tabs, ARTIFACT_ORDER):
    with tab:
        status = session.generation_status[key]
        error = session.errors.get(key.value)
        if error:
            st.error(error)

        # Gerar / regerar a etapa (a primeira etapa sai do botão principal)
        if key != ArtifactKey.VISUAL_MODEL:
            verb = "🔁 Regerar" if key in result else "▶️ Gerar"
            if st.button(f"{verb} {ARTIFACT_LABELS[key]}", key=f"gen_{key.value}", disabled=session.is_busy(key)):
                run_step(key)
                st.rerun()

        thinking = session.thinking_text(key)
        if thinking:
            with st.expander("🧠 Pensamento da IA (stream)"):
                st.code(thinking, language="json")

        if key not in result:
            if status != ArtifactStatus.ERRORED:
                st.caption("Ainda não gerado.")
            continue

        value = result[key]

        if key == ArtifactKey.VISUAL_MODEL:
            st.subheader("Diagrama BPMN")
            render_bpmn(value.diagram_xml)
            dl1, dl2 = st.columns([1, 1])
            with dl1:
                st.download_button(
                    "⬇️ Baixar BPMN (.bpmn)",
                    data=value.diagram_xml.encode("utf-8"),
                    file_name=DIAGRAM_FILENAMES["bpmn"],
                    mime="application/xml",
                    key="download_bpmn",
                )
            with dl2:
                st.download_button(
                    "⬇️ Baixar XML (.xml)",
                    data=value.diagram_xml.encode("utf-8"),
                    file_name=DIAGRAM_FILENAMES["xml"],
                    mime="application/xml",
                    key="download_bpmn_xml",
                )
            with st.expander("✏️ Editar XML do BPMN"):
                edited = st.text_area("BPMN XML", value=value.diagram_xml, height=300, key="bpmn_editor")
                if st.button("💾 Salvar alterações no diagrama"):
                    session.apply_diagram_edit(edited)
                    st.rerun()
            if value.decision_xml:
                st.subheader("Tabela de Decisão (DMN)")
                render_dmn(value.decision_xml)
                st.download_button(
                    "⬇️ Baixar DMN (.dmn)",
                    data=value.decision_xml.encode("utf-8"),
                    file_name=DIAGRAM_FILENAMES["dmn"],
                    mime="application/xml",
                    key="download_dmn",
                )
                with st.expander("Ver XML do DMN"):
                    st.code(value.decision_xml, language="xml")
            else:
                st.caption("Nenhuma regra de decisão identificada (DMN não aplicável).")

        elif key == ArtifactKey.PERSONAL_DATA_ANALYSIS:
            st.markdown("**Dados pessoais identificados**")
            st.table([{"Dado": i.data_label, "Finalidade": i.purpose, "Classificação": i.classification.value} for i in value.identified] or [{"Dado": "Nenhum item"}])
            st.markdown("**Dados sensíveis identificados**")
            st.table([{"Dado": i.data_label, "Finalidade": i.purpose, "Classificação": i.classification.value} for i in value.sensitive_identified] or [{"Dado": "Nenhum item"}])

        elif key == ArtifactKey.DATA_INVENTORY:
            process_name = value.identificacao_servico.nome_processo
            st.download_button(
                "📊 Exportar para Planilha (.csv)",
                data=inventory_to_csv(value),
                file_name=export_filename("IDP", process_name, "csv"),
                mime="text/csv",
            )
            st.json(value.model_dump(mode="json", by_alias=True))

        elif key == ArtifactKey.IMPACT_REPORT_DRAFT:
            if value is None:
                st.success("Risco não classificado como alto: RIPD não é necessário para este processo.")
            else:
                inventory = result.data_inventory
                process_name = inventory.identificacao_servico.nome_processo if inventory else ""
                st.download_button(
                    "📝 Exportar para Documento (.docx)",
                    data=impact_report_to_docx(value),
                    file_name=export_filename("RIPD", process_name, "docx"),
                    mime="application/vnd.openxmlformats-officedocument.wordprocessingml.document",
                )
                st.markdown(value.replace("<br>", "  \n"), unsafe_allow_html=False)

        elif key == ArtifactKey.AUTOMATION_SUGGESTIONS:
            for suggestion in value:
                st.markdown(f"- 💡 {suggestion}")

        elif key == ArtifactKey.ANALYSIS_LOG:
            st.markdown(value)

        # --- Refinamento do artefato ---
        st.markdown("---")
        correction = st.text_area(
            "Correção em linguagem natural",
            key=f"refine_{key.value}",
            placeholder="Ex: adicione uma tarefa de revisão após a etapa de análise",
        )
        if st.button("✨ Refinar este artefato", key=f"refine_btn_{key.value}", disabled=session.is_busy(key)):
            if not correction.strip():
                st.warning("Descreva a correção desejada.")
            else:
                run_refine(key, correction.strip())
                st.rerun()
        if session.refinement_status[key] != ArtifactStatus.IDLE and session.thinking_text(REFINING_CHANNEL):
            with st.expander("🧠 Pensamento do último refinamento"):
                st.code(session.thinking_text(REFINING_CHANNEL), language="json")
