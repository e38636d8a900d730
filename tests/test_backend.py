import pytest

from backend import GeminiTransport, build_content_blocks, chunk_text
from conftest import BPMN_XML, DMN_XML, as_fragments
from exceptions import AnalysisError, ErrorKind
from file_adapter import InlineData, SourceFile
from prompts import ADDITIONAL_CONTEXT_HEADER
from schemas import ArtifactKey

DESCRIPTION = "Processo de matrícula: o aluno envia documentos e a secretaria confere."


@pytest.mark.asyncio
async def test_visual_model_without_decision(make_generator, visual_payload):
    generator, transport = make_generator(as_fragments(visual_payload))
    seen = []
    result = await generator.generate_visual_model(DESCRIPTION, on_fragment=seen.append)
    assert list(result) == [ArtifactKey.VISUAL_MODEL]
    assert result.visual_model.diagram_xml == BPMN_XML
    assert result.visual_model.decision_xml is None
    assert "".join(seen) == "".join(as_fragments(visual_payload))
    assert len(transport.calls) == 1


@pytest.mark.asyncio
async def test_visual_model_with_decision(make_generator):
    payload = {"processo_visual": {"bpmn_xml": BPMN_XML, "dmn_xml": DMN_XML}}
    generator, _ = make_generator(as_fragments(payload))
    result = await generator.generate_visual_model("Se o valor passar de 1000, notificar o gerente.")
    assert result.visual_model.decision_xml == DMN_XML


@pytest.mark.asyncio
async def test_visual_parts_order_with_attachment(make_generator, visual_payload):
    generator, transport = make_generator(as_fragments(visual_payload))
    image = SourceFile("fluxo.png", b"\x89PNG", "image/png")
    await generator.generate_visual_model(DESCRIPTION, file=image)
    parts = transport.calls[0]
    assert len(parts) == 3
    assert isinstance(parts[0], InlineData)
    assert '"processo_visual"' in parts[1]
    assert parts[2] == ADDITIONAL_CONTEXT_HEADER + DESCRIPTION


@pytest.mark.asyncio
async def test_visual_parts_without_description(make_generator, visual_payload):
    generator, transport = make_generator(as_fragments(visual_payload))
    await generator.generate_visual_model("", file=SourceFile("p.bpmn", b"<definitions/>"))
    parts = transport.calls[0]
    assert parts[0] == "<definitions/>"
    assert len(parts) == 2


@pytest.mark.asyncio
async def test_file_errors_are_not_retried(make_generator, visual_payload):
    generator, transport = make_generator(as_fragments(visual_payload))
    with pytest.raises(AnalysisError) as exc:
        await generator.generate_visual_model("", file=SourceFile("projeto.bpm", b"nao e zip"))
    assert exc.value.kind == ErrorKind.CORRUPT_ARCHIVE
    assert exc.value.artifact == "processo_visual"
    assert transport.calls == []


@pytest.mark.asyncio
async def test_impact_report_markdown_for_high_risk(make_generator, full_snapshot):
    report = "# RELATÓRIO DE IMPACTO\n\n## 1. IDENTIFICAÇÃO\n**Controlador:** IFSC"
    generator, transport = make_generator(as_fragments({"rascunho_ripd": report}))
    result = await generator.generate_impact_report(DESCRIPTION, full_snapshot)
    assert result.impact_report_draft == report
    assert full_snapshot.to_json() in transport.calls[0][0]


@pytest.mark.asyncio
async def test_impact_report_null_for_low_risk(make_generator, full_snapshot):
    generator, _ = make_generator(as_fragments({"rascunho_ripd": None}))
    result = await generator.generate_impact_report(DESCRIPTION, full_snapshot)
    assert ArtifactKey.IMPACT_REPORT_DRAFT in result
    assert result.impact_report_draft is None


@pytest.mark.asyncio
async def test_refine_visual_keeps_only_target_key(make_generator, full_snapshot):
    new_bpmn = BPMN_XML.replace("Start_1", "Start_Revisado")
    payload = {
        "processo_visual": {"bpmn_xml": new_bpmn, "dmn_xml": None},
        "log_analise": "o modelo não deveria mandar isto",
    }
    generator, transport = make_generator(as_fragments(payload))
    result = await generator.refine(ArtifactKey.VISUAL_MODEL, full_snapshot, "Renomeie o evento de início")
    assert list(result) == [ArtifactKey.VISUAL_MODEL]
    assert result.visual_model.diagram_xml == new_bpmn
    assert '"Renomeie o evento de início"' in transport.calls[0][0]


@pytest.mark.asyncio
async def test_refine_unknown_target_never_calls_model(make_generator, full_snapshot):
    generator, transport = make_generator(["{}"])
    with pytest.raises(AnalysisError) as exc:
        await generator.refine("planilha", full_snapshot, "x")
    assert exc.value.kind == ErrorKind.REFINEMENT_TARGET_UNSUPPORTED
    assert transport.calls == []


@pytest.mark.asyncio
async def test_recovers_after_two_bad_responses(make_generator, full_snapshot):
    generator, transport = make_generator(
        [""],
        ["sem json"],
        as_fragments({"sugestoes_automacao": ["Formulário online"]}),
    )
    result = await generator.generate_suggestions(DESCRIPTION, full_snapshot)
    assert result.automation_suggestions == ["Formulário online"]
    assert len(transport.calls) == 3


@pytest.mark.asyncio
async def test_gives_up_after_three_attempts(make_generator, full_snapshot):
    generator, transport = make_generator(["resposta: {invalido}"])
    with pytest.raises(AnalysisError) as exc:
        await generator.generate_log(DESCRIPTION, full_snapshot)
    assert exc.value.kind == ErrorKind.INVALID_JSON
    assert exc.value.artifact == "log_analise"
    assert len(transport.calls) == 3


@pytest.mark.asyncio
async def test_stream_failure_midway_is_retried(make_generator, full_snapshot):
    failure = AnalysisError(ErrorKind.TRANSPORT_FAILURE, "conexão encerrada")
    generator, transport = make_generator(
        ['{"log_an', failure],
        as_fragments({"log_analise": "Log completo."}),
    )
    result = await generator.generate_log(DESCRIPTION, full_snapshot)
    assert result.analysis_log == "Log completo."
    assert len(transport.calls) == 2


@pytest.mark.asyncio
async def test_missing_key_is_schema_mismatch_without_retry(make_generator, full_snapshot):
    generator, transport = make_generator(as_fragments({"outra_chave": 1}))
    with pytest.raises(AnalysisError) as exc:
        await generator.generate_data_analysis(DESCRIPTION, full_snapshot)
    assert exc.value.kind == ErrorKind.SCHEMA_MISMATCH
    assert exc.value.artifact == "analise_dados_pessoais"
    assert len(transport.calls) == 1


@pytest.mark.asyncio
async def test_generate_dispatches_by_key(make_generator, inventory_payload, full_snapshot):
    generator, _ = make_generator(as_fragments(inventory_payload))
    result = await generator.generate("inventario_idp", DESCRIPTION, full_snapshot)
    assert result.data_inventory.identificacao_servico.id_referencia == "IDP-001"


def test_content_blocks_for_text_and_image():
    blocks = build_content_blocks([InlineData("image/png", "QUJD"), "prompt"])
    assert blocks == [
        {"type": "image_url", "image_url": "data:image/png;base64,QUJD"},
        {"type": "text", "text": "prompt"},
    ]


class _Chunk:
    def __init__(self, content):
        self.content = content


@pytest.mark.parametrize("content,expected", [
    ("abc", "abc"),
    ([{"type": "text", "text": "a"}, {"type": "thinking", "thinking": "x"}, "b"], "ab"),
    (None, ""),
])
def test_chunk_text(content, expected):
    assert chunk_text(_Chunk(content)) == expected


def test_transport_requires_api_key():
    with pytest.raises(AnalysisError) as exc:
        GeminiTransport(None)
    assert exc.value.kind == ErrorKind.MISSING_API_KEY


class _BrokenLLM:
    async def astream(self, messages):
        yield _Chunk('{"a"')
        raise ConnectionError("reset by peer")


@pytest.mark.asyncio
async def test_transport_wraps_provider_errors():
    transport = GeminiTransport.__new__(GeminiTransport)
    transport.model = "gemini-teste"
    transport.llm = _BrokenLLM()
    received = []
    with pytest.raises(AnalysisError) as exc:
        async for text in transport.stream(["prompt"]):
            received.append(text)
    assert exc.value.kind == ErrorKind.TRANSPORT_FAILURE
    assert "reset by peer" in exc.value.message
    assert received == ['{"a"']


@pytest.mark.asyncio
async def test_unexpected_transport_error_is_wrapped_and_tagged(make_generator, full_snapshot):
    generator, transport = make_generator(ConnectionError("rede"))
    with pytest.raises(AnalysisError) as exc:
        await generator.generate_suggestions(DESCRIPTION, full_snapshot)
    assert exc.value.kind == ErrorKind.TRANSPORT_FAILURE
    assert exc.value.artifact == "sugestoes_automacao"
    assert isinstance(exc.value.__cause__, ConnectionError)
    assert len(transport.calls) == 3


@pytest.mark.asyncio
async def test_visual_step_sends_description_once(make_generator, visual_payload):
    generator, transport = make_generator(as_fragments(visual_payload))
    await generator.generate_visual_model(DESCRIPTION)
    parts = transport.calls[0]
    assert sum(part.count(DESCRIPTION) for part in parts) == 1
    assert parts[-1] == ADDITIONAL_CONTEXT_HEADER + DESCRIPTION
