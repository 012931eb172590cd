# statagen/progress.py
"""
Progress Tracking and Logging

This module provides:
- A Rich spinner showing which wizard component is working
- Dual-file logging per run: run.log for people, events.jsonl for tools
- Console rendering of the taxonomy, generated sections and notices

Log components: Setup, Suggester, Review, Coder, Pipeline.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Sequence

from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table
from rich.text import Text

from .state import ROLE_LABELS, ROLE_ORDER, CodeSection, VariableDefinition


HUMAN_LOG = "run.log"
EVENT_LOG = "events.jsonl"

# kind -> (style, marker)
STATUS_STYLES: Dict[str, tuple] = {
    "success": ("bold green", "✓"),
    "error": ("bold red", "✗"),
    "warning": ("bold yellow", "!"),
    "info": ("dim", "→"),
}

_console = Console()
_run_dir: Optional[Path] = None
_progress: Optional[Progress] = None
_live: Optional[Live] = None
_task_id = None


def start_progress(run_dir: str, live: bool = True) -> None:
    """
    Attach logging to a run directory and optionally start the spinner.

    Interactive runs pass live=False so the review prompts are not
    redrawn over.
    """
    global _run_dir, _progress, _live, _task_id

    _run_dir = Path(run_dir)
    _run_dir.mkdir(parents=True, exist_ok=True)
    for name in (HUMAN_LOG, EVENT_LOG):
        (_run_dir / name).touch()

    if live:
        _progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            TextColumn("[dim]{task.fields[detail]}"),
            TimeElapsedColumn(),
            console=_console,
        )
        _task_id = _progress.add_task("Setup", detail="Preparing the wizard", total=None)
        _live = Live(_progress, console=_console, refresh_per_second=4)
        _live.start()

    log_event("INFO", "Setup", f"Run started at {run_dir}")


def stop_progress() -> None:
    """Stop the spinner and detach from the run directory."""
    global _live, _progress, _run_dir, _task_id

    if _live:
        _live.stop()
    _live = None
    _progress = None
    _task_id = None
    _run_dir = None


def log_event(
    level: str,
    component: str,
    message: str,
    metadata: Optional[Dict[str, Any]] = None
) -> None:
    """
    Record an event in run.log and events.jsonl.

    Without an attached run directory the event is printed to the
    console instead.

    Args:
        level: INFO, WARNING, ERROR or DEBUG
        component: Wizard component that produced the event
        message: Human-readable message
        metadata: Extra data, written to events.jsonl only
    """
    if _run_dir is None:
        _console.print(f"[{level}] [{component}] {message}", markup=False)
        return

    now = datetime.now()
    with open(_run_dir / HUMAN_LOG, "a", encoding="utf-8") as f:
        f.write(f"[{now:%H:%M:%S}] {level:<7} {component}: {message}\n")

    event: Dict[str, Any] = {
        "timestamp": now.isoformat(),
        "level": level,
        "component": component,
        "message": message,
    }
    if metadata:
        event["metadata"] = metadata
    with open(_run_dir / EVENT_LOG, "a", encoding="utf-8") as f:
        f.write(json.dumps(event, ensure_ascii=False) + "\n")


def update_display(component: str, detail: str) -> None:
    """Show the working component and a short detail on the spinner."""
    if _progress is not None and _task_id is not None:
        _progress.update(_task_id, description=component, detail=detail)


def print_status(kind: str, message: str) -> None:
    """Print a one-line status message; kind is a key of STATUS_STYLES."""
    style, marker = STATUS_STYLES[kind]
    line = Text()
    line.append(marker, style=style)
    line.append(f" {message}")
    _console.print(line)


def print_success(message: str) -> None:
    print_status("success", message)


def print_error(message: str) -> None:
    print_status("error", message)


def print_warning(message: str) -> None:
    print_status("warning", message)


def print_info(message: str) -> None:
    print_status("info", message)


def print_header(title: str, subtitle: Optional[str] = None) -> None:
    """Print the wizard banner."""
    _console.print(Panel(Text(title, style="bold cyan"), subtitle=subtitle, expand=False))


def print_taxonomy(variables: Sequence[VariableDefinition]) -> None:
    """
    Render the taxonomy as a table grouped by role.

    Row numbers are positions in the flat taxonomy, which is what the
    rename/relabel prompts expect.
    """
    table = Table(title="变量列表 (Variables)")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Role")
    table.add_column("Name", style="bold")
    table.add_column("Label")

    for role in ROLE_ORDER:
        for position, variable in enumerate(variables):
            if variable.role == role:
                table.add_row(str(position), ROLE_LABELS[role], Text(variable.name), Text(variable.label))

    _console.print(table)


def print_code_section(section: CodeSection) -> None:
    """Print a generated section inside a titled panel."""
    _console.print(Panel(Text(section.code), title=section.title, subtitle=section.explanation))


def print_notices(notices: Iterable[Any]) -> None:
    """Print undismissed session notices (anything with kind and message)."""
    notices = list(notices)
    if not notices:
        return
    table = Table(title="未处理的提示 (Notices)", title_style="bold yellow")
    table.add_column("Kind", style="yellow")
    table.add_column("Message")
    for notice in notices:
        table.add_row(notice.kind, Text(notice.message))
    _console.print(table)


def get_console() -> Console:
    return _console
