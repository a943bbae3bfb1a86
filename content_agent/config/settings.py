"""Resolved runtime settings and the collaborator context shared by a run."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from content_agent.config import constants as C
from content_agent.utils import get_logger, validate_config

logger = get_logger(__name__)


@dataclass(frozen=True)
class FolderScope:
    """Document folders a single agent run may read from."""

    folder_id: str
    ideas_folder_id: Optional[str] = None


@dataclass
class AgentSettings:
    # agent loop
    model: str = C.DEFAULT_AGENT_MODEL
    api_key_env: str = "ANTHROPIC_API_KEY"
    max_iterations: int = C.DEFAULT_MAX_ITERATIONS
    max_tokens: int = C.DEFAULT_AGENT_MAX_TOKENS
    temperature: Optional[float] = None
    timeout: float = C.DEFAULT_MODEL_TIMEOUT_SEC
    retries: int = 2
    tool_timeout_sec: float = C.DEFAULT_TOOL_TIMEOUT_SEC
    max_result_chars: int = C.DEFAULT_MAX_RESULT_CHARS
    max_workers: int = C.DEFAULT_MAX_TOOL_WORKERS
    prompt_file: Optional[str] = None

    # one-shot generation
    llm_provider: str = "anthropic"
    generation_model: str = C.DEFAULT_GENERATION_MODELS["anthropic"]
    generation_temperature: float = 0.7
    generation_timeout: int = 300
    generation_retries: int = 1
    generation_max_tokens: int = 8000
    provider_options: Dict[str, Any] = field(default_factory=dict)
    prompts_dir: Optional[str] = None

    # publishing
    ghost_url: str = ""
    ghost_admin_key_env: str = "GHOST_ADMIN_API_KEY"
    ghost_timeout: float = 30.0

    # documents
    interviews_folder_id: str = ""
    ideas_folder_id: Optional[str] = None
    google_client_id_env: str = "GOOGLE_CLIENT_ID"
    google_client_secret_env: str = "GOOGLE_CLIENT_SECRET"
    google_refresh_token_env: str = "GOOGLE_REFRESH_TOKEN"
    documents_timeout: float = 30.0
    documents_retries: int = 3

    # research
    research_enabled: bool = True
    tavily_key_env: str = "TAVILY_API_KEY"
    research_max_results: int = 5
    research_timeout: float = 30.0

    # brand & matching
    brand_name: str = C.BRAND_NAME
    meta_title_suffix: str = C.META_TITLE_SUFFIX
    key_phrases: List[str] = field(default_factory=lambda: list(C.DEFAULT_KEY_PHRASES))

    state_dir: str = "state"

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "AgentSettings":
        agent = cfg.get("agent") or {}
        gen = cfg.get("generation") or {}
        pub = cfg.get("publishing") or {}
        docs = cfg.get("documents") or {}
        research = cfg.get("research") or {}
        brand = cfg.get("brand") or {}
        matching = cfg.get("matching") or {}
        state = cfg.get("state") or {}

        provider = (gen.get("llm_provider") or "anthropic").lower()
        defaults = cls()
        return cls(
            model=agent.get("model", defaults.model),
            api_key_env=agent.get("api_key_env", defaults.api_key_env),
            max_iterations=int(agent.get("max_iterations", defaults.max_iterations)),
            max_tokens=int(agent.get("max_tokens", defaults.max_tokens)),
            temperature=agent.get("temperature"),
            timeout=float(agent.get("timeout", defaults.timeout)),
            retries=int(agent.get("retries", defaults.retries)),
            tool_timeout_sec=float(agent.get("tool_timeout_sec", defaults.tool_timeout_sec)),
            max_result_chars=int(agent.get("max_result_chars", defaults.max_result_chars)),
            max_workers=int(agent.get("max_workers", defaults.max_workers)),
            prompt_file=agent.get("prompt_file"),
            llm_provider=provider,
            generation_model=gen.get("model") or C.DEFAULT_GENERATION_MODELS.get(provider, defaults.generation_model),
            generation_temperature=float(gen.get("temperature", defaults.generation_temperature)),
            generation_timeout=int(gen.get("timeout", defaults.generation_timeout)),
            generation_retries=int(gen.get("retries", defaults.generation_retries)),
            generation_max_tokens=int(gen.get("max_tokens", defaults.generation_max_tokens)),
            provider_options=dict(gen.get("provider_options") or {}),
            prompts_dir=gen.get("prompts_dir"),
            ghost_url=(pub.get("ghost_url") or "").rstrip("/"),
            ghost_admin_key_env=pub.get("admin_key_env", defaults.ghost_admin_key_env),
            ghost_timeout=float(pub.get("timeout", defaults.ghost_timeout)),
            interviews_folder_id=docs.get("interviews_folder_id", ""),
            ideas_folder_id=docs.get("ideas_folder_id") or None,
            google_client_id_env=docs.get("client_id_env", defaults.google_client_id_env),
            google_client_secret_env=docs.get("client_secret_env", defaults.google_client_secret_env),
            google_refresh_token_env=docs.get("refresh_token_env", defaults.google_refresh_token_env),
            documents_timeout=float(docs.get("timeout", defaults.documents_timeout)),
            documents_retries=int(docs.get("retries", defaults.documents_retries)),
            research_enabled=bool(research.get("enabled", True)),
            tavily_key_env=research.get("api_key_env", defaults.tavily_key_env),
            research_max_results=int(research.get("max_results", defaults.research_max_results)),
            research_timeout=float(research.get("timeout", defaults.research_timeout)),
            brand_name=brand.get("name", defaults.brand_name),
            meta_title_suffix=brand.get("meta_title_suffix", defaults.meta_title_suffix),
            key_phrases=[p.lower() for p in (matching.get("key_phrases") or C.DEFAULT_KEY_PHRASES)],
            state_dir=state.get("dir", defaults.state_dir),
        )

    @property
    def default_scope(self) -> FolderScope:
        return FolderScope(self.interviews_folder_id, self.ideas_folder_id)


@dataclass
class AgentContext:
    """Settings plus the collaborators every tool, generator and agent run uses.

    Built once per process by :func:`build_context` and treated as read-only
    afterwards. ``search`` is ``None`` when research is disabled or no Tavily
    key is configured; the research tools then report that research is
    unavailable instead of failing.
    """

    settings: AgentSettings
    model: Any
    writer: Any
    documents: Any
    publisher: Any
    search: Any = None


def _require_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise RuntimeError(f"{name} is required")
    return value


def load_config(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}
    validate_config(cfg)
    return cfg


def build_context(cfg: Dict[str, Any]) -> AgentContext:
    """Wire every collaborator from a validated configuration mapping."""
    from content_agent.llm.anthropic_model import AnthropicModel
    from content_agent.llm.registry import OneShotWriter
    from content_agent.publisher import GhostConfig, GhostPublisher
    from content_agent.sources.google_docs import GoogleDocsStore
    from content_agent.sources.web_search import TavilySearch

    settings = AgentSettings.from_config(cfg)

    model = AnthropicModel(
        api_key=_require_env(settings.api_key_env),
        model=settings.model,
        max_tokens=settings.max_tokens,
        temperature=settings.temperature,
        timeout=settings.timeout,
        retries=settings.retries,
    )
    writer = OneShotWriter.from_settings(settings)
    publisher = GhostPublisher(
        GhostConfig(
            url=settings.ghost_url,
            admin_api_key=_require_env(settings.ghost_admin_key_env),
            timeout=settings.ghost_timeout,
        )
    )
    documents = GoogleDocsStore(
        client_id=_require_env(settings.google_client_id_env),
        client_secret=_require_env(settings.google_client_secret_env),
        refresh_token=_require_env(settings.google_refresh_token_env),
        retries=settings.documents_retries,
        timeout=settings.documents_timeout,
    )

    search = None
    tavily_key = os.getenv(settings.tavily_key_env)
    if settings.research_enabled and tavily_key:
        search = TavilySearch(
            api_key=tavily_key,
            timeout=settings.research_timeout,
            max_results=settings.research_max_results,
        )
    elif settings.research_enabled:
        logger.warning("research enabled but %s is not set; research tools disabled", settings.tavily_key_env)

    logger.info(
        "context built model=%s provider=%s ghost=%s research=%s",
        settings.model,
        settings.llm_provider,
        settings.ghost_url,
        search is not None,
    )
    return AgentContext(
        settings=settings,
        model=model,
        writer=writer,
        documents=documents,
        publisher=publisher,
        search=search,
    )


def state_path(settings: AgentSettings, name: str) -> Path:
    path = Path(settings.state_dir)
    path.mkdir(parents=True, exist_ok=True)
    return path / name
