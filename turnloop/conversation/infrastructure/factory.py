"""create_orchestrator: wires a ConversationOrchestrator from an AppConfig."""

from turnloop.config.domain.config import AppConfig
from turnloop.conversation.application.orchestrator import ConversationOrchestrator
from turnloop.conversation.application.tool_dispatch import ToolDispatcher
from turnloop.conversation.application.turn_loop import TurnLoop
from turnloop.conversation.domain.callbacks import ConversationCallbacks
from turnloop.conversation.domain.observer import ConversationObserver
from turnloop.tools.domain.observer import ToolObserver
from turnloop.tools.domain.task_store import InMemoryTaskStateStore, TaskStateStore
from turnloop.tools.infrastructure.registry import create_tool_registry
from turnloop.transport.domain.request import GenerationSettings
from turnloop.transport.infrastructure.error_classifier import classify_error
from turnloop.transport.infrastructure.litellm import LiteLLMTransport


def create_orchestrator(
    config: AppConfig,
    callbacks: ConversationCallbacks,
    observer: ConversationObserver,
    tool_observer: ToolObserver,
    task_store: TaskStateStore | None = None,
) -> ConversationOrchestrator:
    """Build an orchestrator streaming through LiteLLM with the configured builtin tools.

    Raises:
        ToolNotFoundError: if the config names a tool that is not a builtin.
    """
    registry = create_tool_registry(
        names=config.tools,
        task_store=task_store or InMemoryTaskStateStore(),
        observer=tool_observer,
    )
    transport = LiteLLMTransport(
        api_base=config.model.api_base, api_key=config.model.api_key
    )
    turn_loop = TurnLoop(
        transport=transport,
        dispatcher=ToolDispatcher(
            executor=registry,
            visual_capture_tools=frozenset(config.conversation.visual_capture_tools),
        ),
        tool_schemas=registry.schemas(),
        generation=GenerationSettings(
            model=config.model.model,
            temperature=config.model.temperature,
            max_output_tokens=config.model.max_output_tokens,
        ),
        conversation=config.conversation,
        retry=config.retry,
        callbacks=callbacks,
        observer=observer,
        classify=classify_error,
    )
    return ConversationOrchestrator(
        turn_loop=turn_loop,
        callbacks=callbacks,
        observer=observer,
        classify=classify_error,
    )
