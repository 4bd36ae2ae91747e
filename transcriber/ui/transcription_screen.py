"""Terminal-based transcription screen with a live transcript and annotation list."""

import time
import logging
import threading
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.layout import Layout
from rich.live import Live
from rich.text import Text
from rich.table import Table
from rich.align import Align

from ..models.session import SessionSnapshot, SessionState
from ..services.transcription_session import TranscriptionSession

logger = logging.getLogger(__name__)

STATE_STYLES = {
    SessionState.IDLE: "bold white",
    SessionState.AUTHORIZING: "bold cyan",
    SessionState.AUTHORIZED: "bold green",
    SessionState.DENIED: "bold red",
    SessionState.RECORDING: "bold red",
    SessionState.STOPPED: "bold yellow",
}


class TranscriptionScreen:
    """Renders a session's snapshot until told to stop."""

    def __init__(self, session: TranscriptionSession, console: Optional[Console] = None,
                 refresh_per_second: float = 4.0):
        self.session = session
        self.console = console or Console()
        self.refresh_per_second = refresh_per_second

    def create_layout(self) -> Layout:
        """Create the main UI layout."""
        layout = Layout()
        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="main", ratio=1),
        )
        layout["main"].split_row(
            Layout(name="transcript_panel", ratio=2),
            Layout(name="annotation_panel", ratio=1),
        )
        return layout

    def render(self, state: SessionSnapshot, layout: Layout) -> Layout:
        header_text = Text.assemble(
            ("Transcriber", "bold blue"), "  |  ",
            (str(state.status.state.value).upper(), STATE_STYLES[state.status.state]),
            "  |  ", state.status_message,
        )
        layout["header"].update(Panel(Align.center(header_text), style="bright_blue"))

        transcript = Text(state.transcript or "Listening for speech...",
                          style="white" if state.transcript else "dim")
        layout["transcript_panel"].update(Panel(transcript, title="Results"))
        layout["annotation_panel"].update(Panel(self.annotation_table(state), title="Analysis"))
        return layout

    @staticmethod
    def annotation_table(state: SessionSnapshot) -> Table:
        table = Table(show_header=True, header_style="bold magenta", expand=True)
        table.add_column("Kind", style="cyan")
        table.add_column("Text", style="white")
        for annotation in state.annotations:
            table.add_row(annotation.kind.value, annotation.text)
        return table

    def run(self, stop_event: threading.Event, duration: Optional[float] = None) -> None:
        """Refresh the screen until ``stop_event`` is set or ``duration`` elapses."""
        deadline = time.monotonic() + duration if duration else None
        layout = self.create_layout()
        interval = 1.0 / self.refresh_per_second

        with Live(self.render(self.session.state, layout), console=self.console,
                  refresh_per_second=self.refresh_per_second, screen=False) as live:
            while not stop_event.wait(interval):
                if deadline is not None and time.monotonic() >= deadline:
                    logger.info("Screen duration reached")
                    break
                live.update(self.render(self.session.state, layout))
            live.update(self.render(self.session.state, layout))

    def print_summary(self, state: SessionSnapshot) -> None:
        self.console.print(Panel(state.transcript or "(no speech recognized)",
                                 title=f"Transcript - {state.status}"))
        if state.annotations:
            self.console.print(self.annotation_table(state))
