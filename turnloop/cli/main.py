"""CLI entrypoint for turnloop: typer app with an `ask` command."""

import asyncio
import signal
import sys
from pathlib import Path

import structlog
import typer
from rich.console import Console

from turnloop.cli.console_callbacks import ConsoleCallbacks, render_workflow
from turnloop.config.infrastructure.observer import StructlogConfigObserver
from turnloop.config.infrastructure.yaml_loader import YamlConfigLoader
from turnloop.conversation.application.orchestrator import ConversationOrchestrator
from turnloop.conversation.domain.cancellation import CancellationToken
from turnloop.conversation.domain.history import user_text
from turnloop.conversation.domain.result import ExchangeResult
from turnloop.conversation.infrastructure.factory import create_orchestrator
from turnloop.conversation.infrastructure.observer import StructlogConversationObserver
from turnloop.core.errors import TurnLoopError
from turnloop.tools.infrastructure.observer import StructlogToolObserver

app = typer.Typer(add_completion=False)


@app.callback()
def main() -> None:
    """Drive an agentic model conversation from the terminal."""


def _configure_structlog(log_format: str) -> None:
    """Configure structlog based on the requested format."""
    if log_format == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    elif log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        typer.echo(f"Invalid log format: {log_format!r}. Must be 'console' or 'json'.")
        raise typer.Exit(code=1)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(0),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


async def _run_exchange(
    orchestrator: ConversationOrchestrator, question: str
) -> ExchangeResult:
    """Run one exchange; SIGINT cancels it through the token instead of killing the loop."""
    token = CancellationToken()
    loop = asyncio.get_running_loop()
    loop.add_signal_handler(signal.SIGINT, token.cancel)
    try:
        return await orchestrator.run(history=[user_text(question)], token=token)
    finally:
        loop.remove_signal_handler(signal.SIGINT)


@app.command()
def ask(
    question: str = typer.Argument(..., help="The question to send to the model"),
    config_path: Path = typer.Option(
        ...,
        "--config",
        "-c",
        help="Path to the conversation config YAML",
    ),
    log_format: str = typer.Option(
        "console",
        "--log-format",
        help="Log format: 'console' or 'json'",
    ),
    plan_gating: bool | None = typer.Option(
        None,
        "--plan-gating/--no-plan-gating",
        help="Override the config's plan approval setting",
    ),
) -> None:
    """Ask a question and stream the agentic exchange to the terminal."""
    try:
        _configure_structlog(log_format=log_format)

        loader = YamlConfigLoader(observer=StructlogConfigObserver())
        try:
            config = loader.load(path=config_path)
        except TurnLoopError as exc:
            typer.echo(str(exc))
            raise typer.Exit(code=1) from exc

        if plan_gating is not None:
            config = config.model_copy(
                update={
                    "conversation": config.conversation.model_copy(
                        update={"plan_gating": plan_gating}
                    )
                }
            )

        console = Console()
        orchestrator = create_orchestrator(
            config=config,
            callbacks=ConsoleCallbacks(console=console),
            observer=StructlogConversationObserver(),
            tool_observer=StructlogToolObserver(),
        )
        result = asyncio.run(_run_exchange(orchestrator=orchestrator, question=question))
        render_workflow(console=console, workflow=orchestrator.workflow())

        if result.status != "complete":
            raise typer.Exit(code=1)

    except TurnLoopError as exc:
        typer.echo(str(exc))
        sys.exit(1)


if __name__ == "__main__":
    app()
