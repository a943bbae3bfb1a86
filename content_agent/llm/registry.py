"""
One-shot text generation adapters with configurable options and retries.

Supported provider_options:
- anthropic:
    base_url: str (optional)
- openai:
    base_url: str (optional)
- gemini:
    use_vertex: bool
    project: str
    location: str (default: us-central1)
    api_version: str (e.g., "v1")

Common controls (read by caller):
- temperature: float
- timeout: int seconds
- retries: int (>=0), exponential backoff (0.5 * 2^attempt) seconds
- max_tokens: int
"""

from __future__ import annotations

import os
import time
from dataclasses import dataclass, field
from typing import Any, Dict

from content_agent.utils import get_logger, redact_secrets

logger = get_logger(__name__)


def _backoff(attempt: int) -> None:
    time.sleep(0.5 * (2 ** attempt))


def call_anthropic(prompt: str, model: str, system: str, temperature: float, timeout: int, retries: int,
                   max_tokens: int, options: dict | None = None) -> str:
    import anthropic
    api_key = os.getenv("ANTHROPIC_API_KEY")
    if not api_key:
        raise RuntimeError("ANTHROPIC_API_KEY is required for Anthropic provider")
    options = options or {}
    base_url = options.get("base_url")
    kwargs = {"api_key": api_key, "timeout": timeout, "max_retries": 0}
    if base_url:
        kwargs["base_url"] = base_url
    client = anthropic.Anthropic(**kwargs)

    request = {
        "model": model,
        "max_tokens": max_tokens,
        "temperature": temperature,
        "messages": [{"role": "user", "content": prompt}],
    }
    if system:
        request["system"] = system

    for attempt in range(retries + 1):
        try:
            resp = client.messages.create(**request)
            return "".join(getattr(b, "text", "") for b in resp.content if getattr(b, "type", "") == "text").strip()
        except Exception as e:
            if attempt == retries:
                raise
            logger.warning("anthropic call failed attempt=%d err=%s", attempt + 1, redact_secrets(str(e)))
            _backoff(attempt)


def call_openai(prompt: str, model: str, system: str, temperature: float, timeout: int, retries: int,
                max_tokens: int, options: dict | None = None) -> str:
    from openai import OpenAI
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise RuntimeError("OPENAI_API_KEY is required for OpenAI provider")
    options = options or {}
    base_url = options.get("base_url") or os.getenv("OPENAI_BASE_URL")
    client = OpenAI(api_key=api_key, base_url=base_url) if base_url else OpenAI(api_key=api_key)

    request = {
        "model": model,
        "input": prompt,
        "temperature": temperature,
        "max_output_tokens": max_tokens,
    }
    if system:
        request["instructions"] = system

    for attempt in range(retries + 1):
        try:
            resp = client.with_options(timeout=timeout).responses.create(**request)
            return (getattr(resp, "output_text", None) or "").strip()
        except Exception as e:
            if attempt == retries:
                raise
            logger.warning("openai call failed attempt=%d err=%s", attempt + 1, redact_secrets(str(e)))
            _backoff(attempt)


def call_gemini(prompt: str, model: str, system: str, temperature: float, timeout: int, retries: int,
                max_tokens: int, options: dict | None = None) -> str:
    from google import genai
    from google.genai import types as genai_types
    options = options or {}
    api_key = os.getenv("GOOGLE_API_KEY") or os.getenv("GEMINI_API_KEY")
    if not api_key and not options.get("use_vertex"):
        raise RuntimeError("GOOGLE_API_KEY (or GEMINI_API_KEY) is required for Gemini Developer API")

    use_vertex = bool(options.get("use_vertex", False))
    project = options.get("project") or os.getenv("GOOGLE_CLOUD_PROJECT")
    location = options.get("location") or os.getenv("GOOGLE_CLOUD_LOCATION") or "us-central1"
    api_version = options.get("api_version")
    http_options = genai_types.HttpOptions(api_version=api_version, timeout=int(timeout * 1000))

    if use_vertex:
        if not project:
            raise RuntimeError("Gemini Vertex mode requires GCP project (set provider_options.project or GOOGLE_CLOUD_PROJECT)")
        client = genai.Client(vertexai=True, project=project, location=location, http_options=http_options)
    else:
        client = genai.Client(api_key=api_key, http_options=http_options)

    config = {"temperature": temperature, "max_output_tokens": max_tokens}
    if system:
        config["system_instruction"] = system

    for attempt in range(retries + 1):
        try:
            resp = client.models.generate_content(model=model, contents=prompt, config=config)
            return (getattr(resp, "text", None) or "").strip()
        except Exception as e:
            if attempt == retries:
                raise
            logger.warning("gemini call failed attempt=%d err=%s", attempt + 1, redact_secrets(str(e)))
            _backoff(attempt)


def call_with_options(provider: str, prompt: str, model: str, system: str = "", temperature: float = 0.7,
                      timeout: int = 300, retries: int = 0, options: dict | None = None,
                      max_tokens: int = 4096) -> str:
    provider = (provider or "").lower()
    if provider == "anthropic":
        return call_anthropic(prompt, model, system, temperature, timeout, retries, max_tokens, options)
    if provider == "openai":
        return call_openai(prompt, model, system, temperature, timeout, retries, max_tokens, options)
    if provider == "gemini":
        return call_gemini(prompt, model, system, temperature, timeout, retries, max_tokens, options)
    raise ValueError(f"Unknown llm_provider={provider}")


@dataclass
class OneShotWriter:
    """Bound generation settings; ``write(prompt, system)`` returns the model's text."""

    provider: str
    model: str
    temperature: float = 0.7
    timeout: int = 300
    retries: int = 1
    max_tokens: int = 8000
    options: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_settings(cls, settings) -> "OneShotWriter":
        options = settings.provider_options or {}
        # provider_options may be keyed per provider
        if settings.llm_provider in options and isinstance(options[settings.llm_provider], dict):
            options = options[settings.llm_provider]
        return cls(
            provider=settings.llm_provider,
            model=settings.generation_model,
            temperature=settings.generation_temperature,
            timeout=settings.generation_timeout,
            retries=settings.generation_retries,
            max_tokens=settings.generation_max_tokens,
            options=dict(options),
        )

    def write(self, prompt: str, system: str = "", max_tokens: int | None = None) -> str:
        logger.info("writer: provider=%s model=%s prompt_chars=%d", self.provider, self.model, len(prompt))
        t0 = time.monotonic()
        text = call_with_options(
            self.provider,
            prompt,
            model=self.model,
            system=system,
            temperature=self.temperature,
            timeout=self.timeout,
            retries=self.retries,
            options=self.options,
            max_tokens=max_tokens or self.max_tokens,
        )
        logger.info("writer: done chars=%d took_ms=%d", len(text), int((time.monotonic() - t0) * 1000))
        return text
