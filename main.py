"""
GymFlow client runner.

Signs in against the configured Supabase project, starts the resolution
engine, and prints every navigation transition in the terminal until
interrupted. Federated users without a password are prompted for one.
"""

import argparse
import asyncio
import logging
import sys

from rich.console import Console
from rich.logging import RichHandler

from modules.backend import SupabaseBackend
from modules.engine import ResolutionEngine
from modules.navigation import NavigationState
from modules.password_gate import PasswordMismatchError, PasswordSetupError, WeakPasswordError
from shared.config import Settings, get_settings
from shared.database import get_supabase_client
from shared.exceptions import GymFlowError

console = Console()


def configure_logging(level: str) -> None:
    """Route log records through rich."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )


def print_transition(previous: NavigationState, current: NavigationState) -> None:
    """Print one navigation transition."""
    selections = {
        key: value
        for key, value in current.model_dump(exclude={"current_screen", "revision"}).items()
        if value is not None
    }
    line = f"[dim]{previous.current_screen.value}[/dim] -> [bold cyan]{current.current_screen.value}[/bold cyan]"
    if selections:
        line += f" [dim]{selections}[/dim]"
    console.print(line)


async def prompt_password_setup(engine: ResolutionEngine) -> None:
    """Ask for a new password until it is accepted or the user skips."""
    console.print("\n[bold yellow]Set a password for your account[/bold yellow]")
    console.print("[dim]Leave the password empty to skip for now.[/dim]")

    while engine.show_password_setup_overlay:
        password = console.input("Password: ", password=True)
        if not password:
            await engine.on_password_setup_skip()
            console.print("[dim]Password setup skipped[/dim]")
            return

        confirm = console.input("Confirm password: ", password=True)
        try:
            await engine.on_password_setup_complete(password, confirm)
        except (WeakPasswordError, PasswordMismatchError) as e:
            console.print(f"[red]{e.message}[/red]")
        except PasswordSetupError as e:
            console.print(f"[red]Error:[/red] {e.message}")
        else:
            console.print("[green]Password saved[/green]")


async def run(email: str, password: str, settings: Settings, watch: bool) -> None:
    """Sign in, route the session, and follow transitions."""
    client = await get_supabase_client()
    backend = SupabaseBackend(client, settings)
    engine = ResolutionEngine(backend, settings=settings)
    engine.machine.subscribe(print_transition)

    console.print(f"[bold]{settings.app_name}[/bold] [dim]v{settings.app_version}[/dim]")

    try:
        await engine.start()
        if engine.session is None:
            await backend.sign_in_with_password(email, password)
            await engine.drain()
            await engine.on_login()
        await engine.drain()

        if engine.show_password_setup_overlay:
            await prompt_password_setup(engine)

        console.print(f"\nCurrent screen: [bold cyan]{engine.current_screen.value}[/bold cyan]")

        if watch:
            console.print("[dim]Watching for session changes, Ctrl-C to exit[/dim]")
            while True:
                await asyncio.sleep(1)
                if engine.show_password_setup_overlay:
                    await prompt_password_setup(engine)
    finally:
        await engine.stop()


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Sign in and follow where the GymFlow client routes the session"
    )
    parser.add_argument("--email", required=True, help="Account email")
    parser.add_argument("--password", help="Account password (prompted if omitted)")
    parser.add_argument(
        "--watch",
        action="store_true",
        help="Keep running and print transitions on session changes",
    )
    parser.add_argument("--log-level", help="Log level (default: from settings)")
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(args.log_level or ("DEBUG" if settings.debug else settings.log_level))

    password = args.password or console.input("Password: ", password=True)

    try:
        asyncio.run(run(args.email, password, settings, args.watch))
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped[/dim]")
    except GymFlowError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        sys.exit(1)
    except RuntimeError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
