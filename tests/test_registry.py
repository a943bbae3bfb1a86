from types import SimpleNamespace

import pytest

from content_agent.config.settings import AgentSettings
from content_agent.llm import registry
from content_agent.llm.registry import OneShotWriter, call_with_options


class FakeAnthropic:
    instances = []

    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.requests = []
        self.messages = SimpleNamespace(create=self._create)
        FakeAnthropic.instances.append(self)

    def _create(self, **request):
        self.requests.append(request)
        return SimpleNamespace(
            content=[
                SimpleNamespace(type="text", text="Hello "),
                SimpleNamespace(type="tool_use", name="x"),
                SimpleNamespace(type="text", text="world"),
            ]
        )


@pytest.fixture(autouse=True)
def _no_sleep(monkeypatch):
    monkeypatch.setattr(registry.time, "sleep", lambda s: None)
    FakeAnthropic.instances = []


def test_anthropic_dispatch(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test-key")
    monkeypatch.setattr("anthropic.Anthropic", FakeAnthropic)

    text = call_with_options("Anthropic", "Write it", model="claude-test", system="rules", temperature=0.3, max_tokens=99)

    assert text == "Hello world"
    client = FakeAnthropic.instances[0]
    assert client.kwargs["max_retries"] == 0
    request = client.requests[0]
    assert request["system"] == "rules"
    assert request["max_tokens"] == 99
    assert request["messages"] == [{"role": "user", "content": "Write it"}]


def test_anthropic_requires_key(monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    with pytest.raises(RuntimeError, match="ANTHROPIC_API_KEY"):
        call_with_options("anthropic", "x", model="m")


def test_unknown_provider():
    with pytest.raises(ValueError, match="Unknown llm_provider"):
        call_with_options("llama", "x", model="m")


def test_openai_retries_then_returns(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    attempts = []

    class FakeResponses:
        def create(self, **request):
            attempts.append(request)
            if len(attempts) == 1:
                raise RuntimeError("rate limited")
            return SimpleNamespace(output_text="  drafted  ")

    class FakeOpenAI:
        def __init__(self, **kwargs):
            self.kwargs = kwargs

        def with_options(self, timeout):
            return SimpleNamespace(responses=FakeResponses())

    monkeypatch.setattr("openai.OpenAI", FakeOpenAI)
    text = call_with_options("openai", "x", model="gpt", system="sys", retries=1)
    assert text == "drafted"
    assert attempts[0]["instructions"] == "sys"
    assert len(attempts) == 2


def test_writer_from_settings_uses_provider_scoped_options(monkeypatch):
    settings = AgentSettings(
        llm_provider="openai",
        generation_model="gpt-x",
        provider_options={"openai": {"base_url": "http://localhost:9000"}},
    )
    writer = OneShotWriter.from_settings(settings)
    assert writer.options == {"base_url": "http://localhost:9000"}

    seen = {}

    def fake_call(provider, prompt, **kwargs):
        seen.update(provider=provider, prompt=prompt, **kwargs)
        return "text"

    monkeypatch.setattr(registry, "call_with_options", fake_call)
    assert writer.write("prompt", system="sys", max_tokens=10) == "text"
    assert seen["provider"] == "openai"
    assert seen["model"] == "gpt-x"
    assert seen["max_tokens"] == 10
    assert seen["options"] == {"base_url": "http://localhost:9000"}
