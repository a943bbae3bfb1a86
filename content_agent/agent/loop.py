"""Bounded tool-calling conversation between the model and the tool executor."""

from __future__ import annotations

import time
from typing import Optional, Sequence

from content_agent.agent.executor import ToolExecutor
from content_agent.agent.tools import TOOL_SPECS
from content_agent.blocklist import blocked_domains
from content_agent.config.constants import ITERATION_LIMIT_NOTE
from content_agent.config.settings import AgentContext, FolderScope
from content_agent.models import Conversation, ModelResponse, ToolSpec
from content_agent.prompt_loader import render_system_prompt
from content_agent.utils import get_logger

logger = get_logger(__name__)


def build_system_prompt(context: AgentContext) -> str:
    settings = context.settings
    return render_system_prompt(
        settings.prompt_file,
        brand_name=settings.brand_name,
        competitors=list(blocked_domains()),
    )


class AgentLoop:
    """Drives one agent run.

    The model sees the same system prompt and tool catalog on every call. Each
    tool-use response is answered with one user turn carrying every result in
    call order. After ``max_iterations`` tool rounds the next response is
    final: any tool calls it still requests are reported, not executed.
    """

    def __init__(
        self,
        context: AgentContext,
        scope: FolderScope,
        system_prompt: Optional[str] = None,
        tools: Sequence[ToolSpec] = TOOL_SPECS,
        executor: Optional[ToolExecutor] = None,
    ):
        self.context = context
        self.scope = scope
        self.max_iterations = context.settings.max_iterations
        self.system_prompt = system_prompt if system_prompt is not None else build_system_prompt(context)
        self.tools = tuple(tools)
        self.executor = executor or ToolExecutor(context, scope)
        self.model_calls = 0

    def _complete(self, conversation: Conversation) -> ModelResponse:
        self.model_calls += 1
        return self.context.model.complete(self.system_prompt, self.tools, conversation)

    def run(self, request: str) -> str:
        t0 = time.monotonic()
        conversation = Conversation.start(request)
        response = self._complete(conversation)

        iterations = 0
        while response.wants_tools and iterations < self.max_iterations:
            iterations += 1
            calls = response.tool_calls
            logger.info(
                "agent: iteration=%d tool_calls=%d tools=%s",
                iterations,
                len(calls),
                ",".join(c.name for c in calls),
            )
            conversation.append_assistant(response.content)
            conversation.append_tool_results(self.executor.execute_batch(calls))
            response = self._complete(conversation)

        text = "\n".join(response.texts)
        if response.wants_tools:
            skipped = [c.name for c in response.tool_calls]
            logger.warning(
                "agent: iteration limit reached limit=%d skipped_tool_calls=%s",
                self.max_iterations,
                skipped,
            )
            note = ITERATION_LIMIT_NOTE.format(limit=self.max_iterations)
            note += f"\n(Unexecuted tool calls: {', '.join(skipped)})"
            text = f"{text}\n\n{note}" if text else note

        logger.info(
            "agent: done iterations=%d model_calls=%d stop=%s took_ms=%d",
            iterations,
            self.model_calls,
            response.stop_reason,
            int((time.monotonic() - t0) * 1000),
        )
        return text


def run_agent(request: str, scope: FolderScope, context: AgentContext) -> str:
    return AgentLoop(context, scope).run(request)
