"""Tests for the bounded agent loop."""

import pytest

from conftest import FakeDocuments, ScriptedModel, make_interview, text_response, tool_response
from content_agent.agent import AgentLoop, run_agent
from content_agent.agent.tools import TOOL_SPECS
from content_agent.models import TextBlock, ToolCallRequest, ToolResult


@pytest.fixture
def documents():
    return FakeDocuments(
        interviews=[
            make_interview("doc-1", "Interview - Jane Doe - Florist", "Flowers all day."),
            make_interview("doc-2", "Interview - Sam Lee - Planner", "Plans all day."),
        ]
    )


def test_list_all_interviews_scenario(make_context, settings, documents):
    model = ScriptedModel(
        [
            tool_response(("list_interviews", {}), text="Let me check."),
            text_response("There are 2 interviews: Jane Doe and Sam Lee."),
        ]
    )
    context = make_context(model=model, documents=documents)

    answer = run_agent("List all interviews", settings.default_scope, context)

    assert answer == "There are 2 interviews: Jane Doe and Sam Lee."
    assert len(model.calls) == 2
    assert model.calls[0]["tools"] == [t.name for t in TOOL_SPECS]
    assert "Pretty Perspectives" in model.calls[0]["system"]

    turns = model.calls[1]["turns"]
    assert [t.role for t in turns] == ["user", "assistant", "user"]
    assert isinstance(turns[1].content[1], ToolCallRequest)
    result = turns[2].content[0]
    assert isinstance(result, ToolResult)
    assert result.request_id == "tu_list_interviews_0"
    assert "Jane Doe" in result.content


def test_no_tool_calls_returns_text_after_one_call(make_context, settings):
    model = ScriptedModel([text_response("Hello.")])
    loop = AgentLoop(make_context(model=model), settings.default_scope)
    assert loop.run("hi") == "Hello."
    assert loop.model_calls == 1


def test_multiple_tool_calls_answered_in_one_turn(make_context, settings, documents):
    model = ScriptedModel(
        [
            tool_response(("list_interviews", {}), ("read_interview", {"document_id": "doc-2"}), ("bogus", {})),
            text_response("ok"),
        ]
    )
    AgentLoop(make_context(model=model, documents=documents), settings.default_scope).run("go")

    results = model.calls[1]["turns"][2].content
    assert [r.request_id for r in results] == ["tu_list_interviews_0", "tu_read_interview_1", "tu_bogus_2"]
    assert [r.is_error for r in results] == [False, False, True]


def test_iteration_limit_stops_and_reports(make_context, settings, documents):
    model = ScriptedModel([tool_response(("list_interviews", {}), text="Still working")])
    loop = AgentLoop(make_context(model=model, documents=documents), settings.default_scope)

    answer = loop.run("loop forever")

    assert loop.model_calls == settings.max_iterations + 1
    assert answer.startswith("Still working")
    assert "iteration limit of 3 tool rounds" in answer
    assert "Unexecuted tool calls: list_interviews" in answer
    # only the executed rounds reach the documents store
    assert documents.calls.count("list_interviews:folder-interviews") == settings.max_iterations


def test_conversation_grows_two_turns_per_round(make_context, settings, documents):
    model = ScriptedModel(
        [
            tool_response(("list_interviews", {})),
            tool_response(("list_articles", {})),
            text_response("done"),
        ]
    )
    AgentLoop(make_context(model=model, documents=documents), settings.default_scope).run("go")
    assert [len(c["turns"]) for c in model.calls] == [1, 3, 5]


def test_custom_system_prompt_and_tools(make_context, settings):
    model = ScriptedModel([text_response("ok")])
    loop = AgentLoop(
        make_context(model=model),
        settings.default_scope,
        system_prompt="custom",
        tools=TOOL_SPECS[:2],
    )
    loop.run("x")
    assert model.calls[0]["system"] == "custom"
    assert model.calls[0]["tools"] == ["list_interviews", "read_interview"]


def test_model_failure_propagates(make_context, settings):
    class Broken:
        def complete(self, *args):
            raise RuntimeError("model down")

    with pytest.raises(RuntimeError, match="model down"):
        AgentLoop(make_context(model=Broken()), settings.default_scope).run("x")


def test_text_blocks_joined(make_context, settings):
    from content_agent.models import STOP_END, ModelResponse

    response = ModelResponse(stop_reason=STOP_END, content=[TextBlock(text="a"), TextBlock(text="b")])
    loop = AgentLoop(make_context(model=ScriptedModel([response])), settings.default_scope)
    assert loop.run("x") == "a\nb"
