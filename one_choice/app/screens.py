from __future__ import annotations

from typing import Callable, Literal

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from one_choice.app.widgets import endings_widget, meters_widget, scene_widget
from one_choice.core.engine import RunController, RunStart, RunSummary
from one_choice.core.models import DIFFICULTIES
from one_choice.core.modifiers import MODIFIERS

RunExit = Literal["menu", "gameover"]
MAX_INPUT_RETRIES = 5


HELP_LINES = [
    "Every scene offers two choices; each one moves the four meters.",
    "A meter that reaches 0 ends the run. Fewer than 30 points is critical.",
    "Scenes get harsher as the run goes on. Difficulty changes how fast.",
    "Each run earns Insight. Spend it on modifier unlocks from the menu.",
    "Controls: 1/2 choose, Q back to menu, H help.",
]


def show_help_screen(console: Console, context: str) -> None:
    table = Table.grid(expand=True)
    table.add_column()
    table.add_row(f"[bold]Help - {context}[/bold]")
    for line in HELP_LINES:
        table.add_row(f"- {line}")
    console.print(Panel(table, title="Help", border_style="blue"))
    Prompt.ask("Press Enter to continue", default="")


class MenuScreen:
    def __init__(self, console: Console, controller: RunController) -> None:
        self.console = console
        self.controller = controller

    @property
    def t(self) -> Callable[[str], str]:
        return self.controller.localizer.resolve

    def _print_header(self) -> None:
        t = self.t
        settings = self.controller.settings
        self.console.rule(f"[bold red]{t('menu.title')}[/bold red] [dim]{t('menu.subtitle')}[/dim]")
        self.console.print(f"[italic]{self.controller.menu_quote()}[/italic]")
        self.console.print(
            f"{t('menu.difficulty')}: [bold]{t('difficulty.' + settings.difficulty)}[/bold] | "
            f"{t('stats.insight')} [bold]{self.controller.insight.balance}[/bold] | "
            f"{t('menu.sound')}: [bold]{t('menu.soundOn') if settings.sound_enabled else t('menu.soundOff')}[/bold]"
        )
        if self.controller.daily.is_available():
            self.console.print(f"[bold green]{t('menu.dailyAvailable')}[/bold green]")

    def show_stats(self) -> None:
        t = self.t
        history = self.controller.history.history
        table = Table(title=t("menu.stats"), expand=True)
        table.add_column("Field", style="cyan", no_wrap=True)
        table.add_column("Value")
        table.add_row(t("stats.totalRuns"), str(history.total_runs))
        table.add_row(t("stats.bestResult"), str(history.best_choices))
        table.add_row(t("stats.commonFailure"), self.controller.most_common_failure())
        table.add_row(t("stats.lastDifficulty"), t(f"difficulty.{history.last_difficulty}"))
        table.add_row(t("stats.insight"), str(self.controller.insight.balance))
        table.add_row(t("stats.unlockedEndings"), f"{self.controller.endings.unlocked_count()}/8")
        self.console.print(table)

    def show_endings(self) -> None:
        entries = self.controller.endings.all_endings(self.controller.localizer)
        self.console.print(endings_widget(entries, self.t("endings.locked"), title=self.t("endings.title")))

    def settings_menu(self) -> None:
        t = self.t
        self.console.rule(f"[bold yellow]{t('menu.difficulty')} / {t('menu.language')}[/bold yellow]")
        difficulty = Prompt.ask(
            t("menu.difficulty"),
            choices=list(DIFFICULTIES),
            default=self.controller.settings.difficulty,
        )
        self.controller.select_difficulty(difficulty)
        language = Prompt.ask(
            t("menu.language"),
            choices=self.controller.localizer.languages(),
            default=self.controller.settings.language,
        )
        self.controller.select_language(language)
        if Confirm.ask(f"{self.t('menu.sound')}?", default=self.controller.settings.sound_enabled) != (
            self.controller.settings.sound_enabled
        ):
            self.controller.toggle_sound()

    def unlock_menu(self) -> None:
        ledger = self.controller.insight
        table = Table(expand=True)
        table.add_column("#", justify="right")
        table.add_column("Modifier")
        table.add_column("Cost", justify="right")
        table.add_column("Status")
        for idx, modifier in enumerate(MODIFIERS, start=1):
            unlocked = modifier.id in ledger.unlocked_modifiers()
            table.add_row(
                str(idx),
                self.t(modifier.name_key),
                str(ledger.modifier_cost(modifier.id)),
                "[green]unlocked[/green]" if unlocked else "-",
            )
        self.console.print(table)

        choice = Prompt.ask("Unlock modifier # (blank to cancel)", default="").strip()
        if not choice:
            return
        if not choice.isdigit() or not 1 <= int(choice) <= len(MODIFIERS):
            self.console.print("[red]Invalid modifier choice.[/red]")
            return
        modifier = MODIFIERS[int(choice) - 1]
        if ledger.unlock_modifier(modifier.id):
            self.console.print(f"[bold green]Unlocked[/bold green] {self.t(modifier.name_key)}.")
        else:
            self.console.print(f"[red]Need {ledger.modifier_cost(modifier.id)} insight, have {ledger.balance}.[/red]")

    def show_last_snapshot(self) -> None:
        snapshot = self.controller.load_last_snapshot()
        if snapshot is None:
            self.console.print("[dim]No recent run.[/dim]")
            return
        self.console.print(meters_widget(snapshot.stats, self.controller.localizer))
        self.console.print(f"Choices: {snapshot.choices_made} | Score: {snapshot.score}")

    def prompt_action(self) -> str:
        self._print_header()
        self.console.print(
            "\n[bold]Actions:[/bold] "
            "[1] Start  [2] Settings  [3] Stats  [4] Endings  [5] Unlocks  [6] Last Run  [H] Help  [Q] Quit"
        )
        return Prompt.ask("Select action", default="1").strip().lower()


class RunScreen:
    def __init__(self, console: Console, controller: RunController, start: RunStart) -> None:
        self.console = console
        self.controller = controller
        self.start = start

    def _render_intro(self) -> None:
        t = self.controller.localizer.resolve
        if self.start.first_time and self.start.quote:
            self.console.print(Panel(self.start.quote, border_style="red"))
        if self.start.is_daily_run:
            self.console.print(f"[bold green]{t('menu.dailyRun')}[/bold green] (seed {self.start.seed})")
        modifier = self.start.modifier
        label = f"{modifier.name} - {modifier.description}" if modifier else t("modifier.none")
        self.console.print(f"{t('modifier.active')} [bold]{label}[/bold]")

    def _render_hud(self) -> None:
        run = self.controller.run
        self.console.print(meters_widget(self.controller.meters.get_all(), self.controller.localizer))
        if run.current_scene is not None:
            self.console.print(scene_widget(run.current_scene, run.choices_made, run.score, self.controller.localizer))

    def _prompt_choice(self) -> str:
        invalid_count = 0
        while True:
            raw = Prompt.ask("Choose [1/2] (or Q/H)", default="").strip().lower()
            if raw in {"1", "2", "q", "h"}:
                return raw
            invalid_count += 1
            self.console.print("[red]Enter 1, 2, Q or H.[/red]")
            if invalid_count >= MAX_INPUT_RETRIES:
                return "q"

    def run(self) -> RunExit:
        self._render_intro()
        while self.controller.game_state == "playing":
            if self.controller.run.current_scene is None:
                self.console.print("[bold red]No scene available.[/bold red]")
                self.controller.return_to_menu()
                return "menu"
            self._render_hud()
            action = self._prompt_choice()
            if action == "h":
                show_help_screen(self.console, "Run")
                continue
            if action == "q":
                self.controller.return_to_menu()
                return "menu"

            outcome = self.controller.make_choice(int(action) - 1)
            if outcome is None or not outcome.game_over:
                continue

            summary = outcome.summary
            if summary is not None:
                GameOverScreen(self.console, self.controller).show(summary)
            if Confirm.ask(self.controller.localizer.resolve("game.revive"), default=False):
                if self.controller.revive_run():
                    continue
                self.console.print("[yellow]Revive unavailable.[/yellow]")
            self.controller.return_to_menu()
            return "gameover"
        return "menu"


class GameOverScreen:
    def __init__(self, console: Console, controller: RunController) -> None:
        self.console = console
        self.controller = controller

    def show(self, summary: RunSummary) -> None:
        t = self.controller.localizer.resolve
        self.console.rule(f"[bold red]{t('game.collapse')}[/bold red]")
        self.console.print(Panel(summary.ending_description, title=summary.ending_title, border_style="red"))
        table = Table.grid(expand=True)
        table.add_column(style="cyan")
        table.add_column()
        table.add_row(t("game.decisions"), str(summary.choices_made))
        table.add_row(t("game.score"), str(summary.score))
        table.add_row(t("game.survived"), f"{summary.percentile}% {t('game.percentile')}")
        table.add_row(t("insight.earned"), f"+{summary.insight_earned}")
        table.add_row(t("insight.total"), str(summary.insight_total))
        if summary.new_endings:
            titles = [t(f"endings.{ending_id}.title") for ending_id in summary.new_endings]
            table.add_row(t("endings.title"), ", ".join(titles))
        self.console.print(table)
        if summary.restart_quote:
            self.console.print(f"[italic]{summary.restart_quote}[/italic]")
