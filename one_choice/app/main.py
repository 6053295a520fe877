from __future__ import annotations

import os

from rich.console import Console

from one_choice.app.screens import MenuScreen, RunScreen, show_help_screen
from one_choice.app.services.logger import configure_logging
from one_choice.app.services.paths import resolve_user_paths
from one_choice.core.engine import RunController
from one_choice.core.persistence import JsonFileStore


def main() -> None:
    console = Console()
    try:
        paths = resolve_user_paths()
    except RuntimeError as exc:
        console.print(f"[bold red]{exc}[/bold red]")
        raise SystemExit(1) from exc

    verbose = os.environ.get("ONE_CHOICE_VERBOSE", "").strip().lower() in {"1", "true", "yes", "on"}
    bundle = configure_logging(paths.logs, verbose=verbose)
    logger = bundle.app

    console.print("[bold]Starting One Choice...[/bold]")
    logger.info("Starting One Choice (data=%s).", paths.root)

    controller = RunController(JsonFileStore(paths.store))
    controller.boot()
    if controller.catalog.used_fallback:
        console.print("[yellow]Scene content failed to load; playing with fallback scenes.[/yellow]")

    menu = MenuScreen(console=console, controller=controller)
    try:
        while True:
            action = menu.prompt_action()

            if action in {"q", "quit", "exit"}:
                console.print("[bold]Goodbye.[/bold]")
                logger.info("Exited from menu.")
                return
            if action == "2":
                menu.settings_menu()
                continue
            if action == "3":
                menu.show_stats()
                continue
            if action == "4":
                menu.show_endings()
                continue
            if action == "5":
                menu.unlock_menu()
                continue
            if action == "6":
                menu.show_last_snapshot()
                continue
            if action in {"h", "help"}:
                show_help_screen(console, "Menu")
                continue
            if action != "1":
                console.print("[red]Unknown action.[/red]")
                continue

            start = controller.start_game_from_menu()
            run_exit = RunScreen(console=console, controller=controller, start=start).run()
            logger.info("Run finished: exit=%s choices=%d.", run_exit, controller.run.choices_made)
    except Exception:
        logger.exception("Unhandled exception in game loop.")
        console.print(f"[bold red]A fatal error occurred.[/bold red] See {bundle.latest_log_path}")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
