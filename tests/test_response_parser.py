import pytest

from conftest import as_fragments
from exceptions import AnalysisError, ErrorKind
from response_parser import assemble_response, collect_stream, strip_code_fence


async def _aiter(items):
    for item in items:
        yield item


def test_plain_json_object():
    assert assemble_response('{"log_analise": "ok"}') == {"log_analise": "ok"}


def test_fenced_json_with_language_tag():
    text = '```json\n{"sugestoes_automacao": ["a", "b"]}\n```'
    assert assemble_response(text) == {"sugestoes_automacao": ["a", "b"]}


def test_fence_without_language_tag():
    assert assemble_response('```\n{"a": 1}\n```') == {"a": 1}


def test_prose_around_object_is_ignored():
    text = 'Claro! Aqui está o resultado:\n{"a": {"b": [1, 2]}}\nEspero ter ajudado.'
    assert assemble_response(text) == {"a": {"b": [1, 2]}}


def test_escaped_greater_than_is_repaired():
    text = '{"processo_visual": {"bpmn_xml": "<bpmn:task id=\\"T1\\"/\\>", "dmn_xml": null}}'
    parsed = assemble_response(text)
    assert parsed["processo_visual"]["bpmn_xml"] == '<bpmn:task id="T1"/>'
    assert parsed["processo_visual"]["dmn_xml"] is None


@pytest.mark.parametrize("text", ["", "   ", "\n\t\n"])
def test_blank_text_is_empty_response(text):
    with pytest.raises(AnalysisError) as exc:
        assemble_response(text)
    assert exc.value.kind == ErrorKind.EMPTY_RESPONSE


@pytest.mark.parametrize("text", ["sem json aqui", '{"a": 1', '"a": 1}', "} invertido {"])
def test_missing_or_unbalanced_braces(text):
    with pytest.raises(AnalysisError) as exc:
        assemble_response(text)
    assert exc.value.kind == ErrorKind.NO_JSON_OBJECT_FOUND


def test_invalid_json_message_includes_raw_text():
    raw = "resposta: {chave sem aspas: 1}"
    with pytest.raises(AnalysisError) as exc:
        assemble_response(raw)
    assert exc.value.kind == ErrorKind.INVALID_JSON
    assert raw in exc.value.message


def test_strip_code_fence_leaves_unfenced_text():
    assert strip_code_fence('  {"a": 1}  ') == '{"a": 1}'


@pytest.mark.asyncio
async def test_collect_stream_preserves_order_and_notifies_each_fragment():
    fragments = as_fragments({"log_analise": "passo a passo da análise"}, size=5)
    seen = []
    text = await collect_stream(_aiter(fragments), seen.append)
    assert text == "".join(fragments)
    assert seen == fragments


@pytest.mark.asyncio
async def test_failing_observer_does_not_break_stream():
    def observer(_fragment):
        raise RuntimeError("painel fechado")

    text = await collect_stream(_aiter(['{"a"', ": 1}"]), observer)
    assert assemble_response(text) == {"a": 1}
