from __future__ import annotations

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from one_choice.core.endings import EndingEntry
from one_choice.core.localization import Localizer
from one_choice.core.models import METER_NAMES, Scene

LOW_STYLE_THRESHOLD = 30


def _meter_bar(value: int, width: int = 20) -> str:
    filled = round(value / 100 * width)
    return "#" * filled + "." * (width - filled)


def meters_widget(values: dict[str, int], localizer: Localizer) -> Panel:
    table = Table.grid(expand=True)
    table.add_column(justify="left")
    table.add_column(justify="left")
    table.add_column(justify="right")
    for meter in METER_NAMES:
        value = values.get(meter, 0)
        style = "red" if value < LOW_STYLE_THRESHOLD else "green"
        table.add_row(localizer.resolve(f"meters.{meter}"), f"[{style}]{_meter_bar(value)}[/{style}]", f"{value:3d}")
    return Panel(table, title="Meters", border_style="cyan")


def scene_widget(scene: Scene, choices_made: int, score: int, localizer: Localizer) -> Panel:
    text = Text(scene.text)
    text.append("\n\n")
    for idx, choice in enumerate(scene.choices, start=1):
        text.append(f"[{idx}] {choice.label}\n", style="bold yellow")
    subtitle = f"{localizer.resolve('game.decisions')} {choices_made}  {localizer.resolve('game.score')} {score}"
    return Panel(text, subtitle=subtitle, border_style="white")


def endings_widget(entries: list[EndingEntry], locked_label: str, title: str = "Endings") -> Panel:
    table = Table(expand=True)
    table.add_column("Ending")
    table.add_column("Description")
    for entry in entries:
        if entry.unlocked:
            table.add_row(f"[green]{entry.title}[/green]", entry.description)
        else:
            table.add_row(f"[dim]{locked_label}[/dim]", "")
    return Panel(table, title=title, border_style="magenta")
