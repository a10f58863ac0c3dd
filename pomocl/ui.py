"""Textual-based live dashboard over the persisted timer state."""

from typing import Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Vertical
from textual.timer import Timer
from textual.widgets import Footer, ProgressBar, Static

from . import commands
from .clock import ClockSnapshot, Phase
from .errors import PomoError
from .render import IDLE_MESSAGE, render_big_time
from .store import StateStore


class BigTimer(Static):
    """Big block-digit countdown."""

    def update_display(self, snapshot: Optional[ClockSnapshot]) -> None:
        if snapshot is None:
            self.update(IDLE_MESSAGE)
        else:
            self.update(render_big_time(snapshot.remaining))


class PhaseLabel(Static):
    """Phase label with repetition counter."""

    def update_display(self, snapshot: Optional[ClockSnapshot]) -> None:
        if snapshot is None:
            self.update("─── idle ───")
        elif snapshot.phase is Phase.FINISHED:
            self.update("─── done ───")
        else:
            self.update(
                f"─── {snapshot.phase.label} "
                f"{snapshot.repetition_index}/{snapshot.total_repetitions} ───"
            )


class StatusBadge(Static):
    """Running/paused indicator."""

    def update_display(self, snapshot: Optional[ClockSnapshot]) -> None:
        if snapshot is not None and snapshot.is_paused:
            self.update("⏸ PAUSED")
            self.add_class("paused")
        else:
            self.update("▶ RUNNING" if snapshot is not None else "")
            self.remove_class("paused")


class PomoclApp(App):
    """Polls the state store and mirrors it on screen."""

    CSS_PATH = "pomocl.tcss"

    BINDINGS = [
        Binding("space", "toggle", "Pause/Unpause"),
        Binding("s", "stop", "Stop"),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(self, store: StateStore, interval: float = 1.0) -> None:
        super().__init__()
        self.store = store
        self.interval = interval
        self._poll_timer: Timer | None = None

    def compose(self) -> ComposeResult:
        with Container(id="main"):
            with Vertical(id="timer-container"):
                yield PhaseLabel(id="phase-label")
                yield BigTimer(id="big-timer")
                yield StatusBadge(id="status-badge")
                yield ProgressBar(id="progress", show_eta=False, show_percentage=False)
        yield Footer()

    def on_mount(self) -> None:
        self._refresh_display()
        self._poll_timer = self.set_interval(self.interval, self._refresh_display)

    def _refresh_display(self) -> None:
        """Re-read the store and update all widgets."""
        try:
            snapshot = commands.snapshot(self.store, commands.utcnow())
        except PomoError as exc:
            self.notify(str(exc), severity="error")
            return

        self.query_one("#big-timer", BigTimer).update_display(snapshot)
        self.query_one("#phase-label", PhaseLabel).update_display(snapshot)
        self.query_one("#status-badge", StatusBadge).update_display(snapshot)
        progress = snapshot.progress if snapshot is not None else 0.0
        self.query_one("#progress", ProgressBar).update(total=100, progress=progress * 100)

        container = self.query_one("#timer-container")
        container.remove_class("work", "break")
        if snapshot is not None and snapshot.phase is not Phase.FINISHED:
            container.add_class(snapshot.phase.value)

    def action_toggle(self) -> None:
        try:
            commands.toggle(self.store, commands.utcnow())
        except PomoError as exc:
            self.notify(str(exc), severity="error")
        self._refresh_display()

    def action_stop(self) -> None:
        try:
            commands.stop(self.store)
        except PomoError as exc:
            self.notify(str(exc), severity="error")
        self._refresh_display()


def run_ui(store: StateStore, interval: float = 1.0) -> None:
    """Run the dashboard until the user quits."""
    PomoclApp(store, interval).run()
