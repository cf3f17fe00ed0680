"""Rich terminal view of the upload queue and transcript history."""

import logging
from typing import List, Optional

from rich.console import Console
from rich.live import Live
from rich.table import Table
from rich.text import Text

from ..models.events import QueueChangedEvent, UploadCompletedEvent, UploadStartedEvent
from ..models.transcript import TranscriptRecord
from ..models.upload import UploadFile, UploadStatus
from ..upload.events import TOPIC_COMPLETED, TOPIC_QUEUE_CHANGED, TOPIC_STARTED, UploadEvents

logger = logging.getLogger(__name__)

STATUS_STYLES = {
    UploadStatus.QUEUED: "dim",
    UploadStatus.PROCESSING: "bold yellow",
    UploadStatus.COMPLETE: "bold green",
    UploadStatus.ERROR: "bold red",
}


def _format_size(size: int) -> str:
    if size >= 1024 * 1024:
        return f"{size / (1024 * 1024):.1f} MB"
    return f"{size / 1024:.1f} KB"


class UploadProgressView:
    """Subscribes to upload events and renders a live status table."""

    def __init__(self, events: UploadEvents, console: Optional[Console] = None):
        self.events = events
        self.console = console or Console()
        self.files: List[UploadFile] = []
        self.live: Optional[Live] = None

        self.events.subscribe(self.on_queue_changed, TOPIC_QUEUE_CHANGED)
        self.events.subscribe(self.on_started, TOPIC_STARTED)
        self.events.subscribe(self.on_completed, TOPIC_COMPLETED)

    def build_table(self) -> Table:
        table = Table(title="Bulk Upload", expand=True)
        table.add_column("File", style="cyan", no_wrap=True)
        table.add_column("Size", justify="right")
        table.add_column("Status")
        table.add_column("Progress", justify="right")
        table.add_column("Details")

        for entry in self.files:
            status = Text(entry.status.value, style=STATUS_STYLES[entry.status])
            details = entry.error or entry.transcript_id or ""
            table.add_row(entry.name, _format_size(entry.size), status,
                          f"{entry.progress}%", details)
        return table

    def on_queue_changed(self, event: QueueChangedEvent) -> None:
        self.files = event.files
        if self.live is not None:
            self.live.update(self.build_table())

    def on_started(self, event: UploadStartedEvent) -> None:
        self.console.print(f"[bold]Processing {event.count} file(s)...[/bold]")

    def on_completed(self, event: UploadCompletedEvent) -> None:
        failed = event.count - len(event.transcript_ids)
        self.console.print(
            f"[bold green]Done:[/bold green] {len(event.transcript_ids)} transcribed, "
            f"[bold red]{failed}[/bold red] failed")

    def __enter__(self) -> "UploadProgressView":
        self.live = Live(self.build_table(), console=self.console, refresh_per_second=4)
        self.live.__enter__()
        return self

    def __exit__(self, *args) -> None:
        if self.live is not None:
            self.live.update(self.build_table())
            self.live.__exit__(*args)
            self.live = None

    def close(self) -> None:
        self.events.unsubscribe(self.on_queue_changed, TOPIC_QUEUE_CHANGED)
        self.events.unsubscribe(self.on_started, TOPIC_STARTED)
        self.events.unsubscribe(self.on_completed, TOPIC_COMPLETED)


def render_history(records: List[TranscriptRecord], console: Optional[Console] = None) -> Table:
    """Print saved transcripts, newest first, and return the table."""
    console = console or Console()
    table = Table(title="Upload History")
    table.add_column("Created", no_wrap=True)
    table.add_column("File", style="cyan")
    table.add_column("User")
    table.add_column("Duration", justify="right")
    table.add_column("Sentiment")
    table.add_column("Score", justify="right")
    table.add_column("Keywords")

    for record in records:
        duration = f"{record.duration:.0f}s" if record.duration else "-"
        score = str(record.call_score) if record.call_score is not None else "-"
        table.add_row(
            record.created_at.strftime("%Y-%m-%d %H:%M"),
            record.filename,
            record.user_id,
            duration,
            record.sentiment or "-",
            score,
            ", ".join(record.keywords[:5]),
        )

    console.print(table)
    return table
