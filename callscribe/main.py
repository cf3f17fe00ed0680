"""Command line entry point for CallScribe."""

import asyncio
import sys
import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from . import __version__
from .config import CallScribeConfig
from .errors import CallScribeError
from .services import BulkUploadService, create_store
from .storage import TranscriptFileStore
from .ui import UploadProgressView, render_history

logger = logging.getLogger(__name__)


def setup_logging(config: CallScribeConfig, level: Optional[str] = None) -> None:
    """Set up logging configuration from YAML config."""
    level = level or config.get('logging.level', 'INFO')
    log_file_path = config.get('logging.file_path', 'data/logs/callscribe.log')
    console_output = config.get('logging.console_output', True)

    Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)

    handlers = []

    # File handler - always write to file
    file_handler = logging.FileHandler(log_file_path)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    ))
    handlers.append(file_handler)

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(logging.WARNING)  # Only show warnings and above on console
        console_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        handlers.append(console_handler)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper()))
    for handler in handlers:
        root_logger.addHandler(handler)

    logger.info("=" * 50)
    logger.info("CallScribe starting up")
    logger.info(f"Log file: {log_file_path}")
    logger.info(f"Log level set to: {level}")
    logger.info("=" * 50)


async def _run_upload(service: BulkUploadService, files, assignee: Optional[str],
                      console: Console) -> int:
    accepted, rejected = service.add_files(files, assignee)
    for item in rejected:
        console.print(f"[red]Rejected:[/red] {item.reason}")
    if not accepted:
        console.print("[yellow]No audio files to process.[/yellow]")
        return 1

    view = UploadProgressView(service.events, console)
    try:
        with view:
            result = await service.process_queue(assignee)
    finally:
        view.close()

    if not result.success:
        console.print(f"[red]{result.error}[/red]")
        return 1
    return 0 if result.error_count == 0 and not rejected else 2


@click.group()
@click.option("--config", "config_path", type=click.Path(dir_okay=False),
              help="Path to configuration YAML file (default: ./callscribe.yaml)")
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
              default=None, help="Override the configured log level")
@click.version_option(__version__, prog_name="CallScribe")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], log_level: Optional[str]) -> None:
    """CallScribe - bulk transcription of sales-call recordings."""
    try:
        config = CallScribeConfig(config_path)
    except CallScribeError as e:
        raise click.ClickException(str(e)) from e
    setup_logging(config, log_level)
    ctx.obj = config


@cli.command()
@click.argument("files", nargs=-1, required=True, type=click.Path())
@click.option("--assignee", help="User id the transcripts are assigned to")
@click.pass_obj
def upload(config: CallScribeConfig, files, assignee: Optional[str]) -> None:
    """Queue FILES, transcribe them one by one and save the transcripts."""
    console = Console()
    try:
        service = BulkUploadService(config)
    except CallScribeError as e:
        raise click.ClickException(str(e)) from e

    try:
        exit_code = asyncio.run(_run_upload(service, files, assignee, console))
    except KeyboardInterrupt:
        service.close()
        console.print("\n👋 Upload interrupted")
        exit_code = 130
    finally:
        service.shutdown()
    sys.exit(exit_code)


@cli.command()
@click.option("--limit", type=int, default=20, show_default=True, help="Rows to show")
@click.pass_obj
def history(config: CallScribeConfig, limit: int) -> None:
    """Show saved transcripts, newest first."""
    try:
        store = create_store(config)
        records = asyncio.run(store.load_history(limit=limit))
    except CallScribeError as e:
        raise click.ClickException(str(e)) from e

    console = Console()
    render_history(records, console)
    if isinstance(store, TranscriptFileStore):
        stats = store.get_storage_stats()
        console.print(f"{stats['transcript_count']} transcripts, "
                      f"{stats['total_size_mb']} MB in {stats['data_directory']}")


def main() -> None:
    """Main entry point for CallScribe."""
    cli()


if __name__ == "__main__":
    main()
