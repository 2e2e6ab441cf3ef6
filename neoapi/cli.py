import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, NoReturn, Optional

import typer
from pydantic import ValidationError
from rich.console import Console

from neoapi.callbacks import LoggingCallbacks
from neoapi.client import NeoApiClient
from neoapi.config import ClientConfig
from neoapi.constants import (
    CLI_ANALYZE_HELP,
    CLI_API_KEY_HELP,
    CLI_API_URL_HELP,
    CLI_BATCH_SIZE_HELP,
    CLI_CHECK_FREQUENCY_HELP,
    CLI_DEBUG_HELP,
    CLI_GROUP_HELP,
    CLI_JSON_OUTPUT_HELP,
    CLI_MAIN_HELP,
    CLI_MAX_RETRIES_HELP,
    CLI_MODEL_HELP,
    CLI_PROJECT_HELP,
    CLI_REPLAY_HELP,
    CLI_REPLAY_PATH_HELP,
    CLI_TRACK_HELP,
    CLI_TRACK_TEXT_HELP,
    EXIT_CODE_FAILURE,
    EXIT_CODE_INVALID_INPUT,
)
from neoapi.errors import ConfigurationError, DeliveryError
from neoapi.models import LLMOutput


LOG = logging.getLogger(__name__)

app = typer.Typer(rich_markup_mode="rich", name="neoapi", help=CLI_MAIN_HELP)

console = Console()


@dataclass
class RunSummary:
    tracked: int = 0
    delivered: int = 0
    failed: int = 0
    dropped: int = 0


class ConsoleCallbacks(LoggingCallbacks):
    """
    Prints analysis results and failures, and keeps counts for the summary.
    """

    def __init__(self, console: Console):
        self.console = console
        self.summary = RunSummary()

    def analysis_received(self, event: LLMOutput, analysis: Any) -> None:
        super().analysis_received(event, analysis)
        self.console.print("[bold]Analysis Response:[/bold]")
        if isinstance(analysis, str):
            self.console.print(analysis, markup=False, highlight=False)
        else:
            self.console.print(analysis)

    def delivery_failed(self, event: LLMOutput, error: DeliveryError) -> None:
        super().delivery_failed(event, error)
        self.console.print(f"[red]{error.message}[/red]")

    def batch_dispatched(self, report) -> None:
        super().batch_dispatched(report)
        self.summary.delivered += report.delivered
        self.summary.failed += report.failed
        self.summary.dropped += report.dropped


def configure_logger(debug: bool) -> None:
    level = logging.CRITICAL

    if debug:
        level = logging.DEBUG

    logging.basicConfig(format="%(asctime)s %(name)s => %(message)s", level=level)


@app.callback()
def cli(
    debug: bool = typer.Option(False, "--debug", help=CLI_DEBUG_HELP),
) -> None:
    configure_logger(debug)


def load_config(**overrides: Any) -> ClientConfig:
    try:
        return ClientConfig.from_env(**overrides)
    except ConfigurationError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(code=e.get_exit_code())


async def deliver_events(
    config: ClientConfig, events: List[LLMOutput], callbacks: ConsoleCallbacks
) -> None:
    async with NeoApiClient(config, callbacks=callbacks) as client:
        for event in events:
            client.track(event)
            callbacks.summary.tracked += 1


def run(config: ClientConfig, events: List[LLMOutput]) -> RunSummary:
    callbacks = ConsoleCallbacks(console)
    asyncio.run(deliver_events(config, events, callbacks))
    summary = callbacks.summary

    console.print(
        f"Tracked {summary.tracked} events: {summary.delivered} delivered, "
        f"{summary.failed} failed, {summary.dropped} dropped by sampling."
    )

    if summary.failed:
        raise typer.Exit(code=EXIT_CODE_FAILURE)

    return summary


def reject_line(path: Path, lineno: int, reason: str) -> NoReturn:
    console.print(f"[red]Line {lineno} of {path} is not a valid event ({reason}).[/red]")
    raise typer.Exit(code=EXIT_CODE_INVALID_INPUT)


def read_events(path: Path) -> List[LLMOutput]:
    events = []
    for lineno, raw in enumerate(path.read_bytes().splitlines(), 1):
        try:
            line = raw.decode("utf-8")
        except UnicodeDecodeError:
            reject_line(path, lineno, "not UTF-8 text")

        if not line.strip():
            continue
        try:
            events.append(LLMOutput.model_validate_json(line))
        except ValidationError as e:
            reject_line(path, lineno, f"{e.error_count()} errors")
    return events


@app.command(name="track", help=CLI_TRACK_HELP)
def track(
    text: str = typer.Argument(..., help=CLI_TRACK_TEXT_HELP),
    project: Optional[str] = typer.Option(None, "--project", help=CLI_PROJECT_HELP),
    group: Optional[str] = typer.Option(None, "--group", help=CLI_GROUP_HELP),
    model: Optional[str] = typer.Option(None, "--model", help=CLI_MODEL_HELP),
    analyze: bool = typer.Option(False, "--analyze", help=CLI_ANALYZE_HELP),
    json_output: bool = typer.Option(
        False, "--json-output", help=CLI_JSON_OUTPUT_HELP
    ),
    api_key: Optional[str] = typer.Option(None, "--api-key", help=CLI_API_KEY_HELP),
    api_url: Optional[str] = typer.Option(None, "--api-url", help=CLI_API_URL_HELP),
) -> None:
    config = load_config(api_key=api_key, api_url=api_url)

    event = LLMOutput.create(
        text,
        project=project,
        group=group,
        model=model,
        need_analysis_response=analyze,
        format_json_output=json_output,
    )
    LOG.info("Tracking one event for project %s", project)

    run(config, [event])


@app.command(name="replay", help=CLI_REPLAY_HELP)
def replay(
    path: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help=CLI_REPLAY_PATH_HELP
    ),
    batch_size: Optional[int] = typer.Option(
        None, "--batch-size", help=CLI_BATCH_SIZE_HELP
    ),
    check_frequency: Optional[int] = typer.Option(
        None, "--check-frequency", help=CLI_CHECK_FREQUENCY_HELP
    ),
    max_retries: Optional[int] = typer.Option(
        None, "--max-retries", help=CLI_MAX_RETRIES_HELP
    ),
    api_key: Optional[str] = typer.Option(None, "--api-key", help=CLI_API_KEY_HELP),
    api_url: Optional[str] = typer.Option(None, "--api-url", help=CLI_API_URL_HELP),
) -> None:
    config = load_config(
        api_key=api_key,
        api_url=api_url,
        batch_size=batch_size,
        check_frequency=check_frequency,
        max_retries=max_retries,
    )
    events = read_events(path)
    LOG.info("Replaying %d events from %s", len(events), path)

    run(config, events)
