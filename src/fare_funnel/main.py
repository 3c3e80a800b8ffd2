"""
Fare Funnel - CLI Entry Point.

Configuration Priority:
    1. CLI arguments (--browser, --visible, --timeout, etc.)
    2. Environment variables (FARE_FUNNEL__BROWSER__HEADLESS, etc.)
    3. Config file (config.yaml)

Usage:
    fare-funnel states
    fare-funnel probe https://www.aircanada.com/... --state results -b chromium -b webkit
    fare-funnel pick https://www.aircanada.com/... --cabin "Premium Economy" --visible
"""

import asyncio
import logging
import signal
from typing import Any, Awaitable, Callable, Dict, List, Optional
from urllib.parse import urljoin

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from fare_funnel import __version__
from fare_funnel.browsers.playwright_browser import PlaywrightBrowser
from fare_funnel.config import Settings, load_config
from fare_funnel.detection.resolver import StateSignalResolver
from fare_funnel.detection.targets import get_target, list_targets
from fare_funnel.exceptions import (
    Cancelled,
    ConfigurationError,
    FareFunnelError,
    StateNotReachedError,
)
from fare_funnel.selection.collectors import CABIN_OPTIONS, expand_first_result, select_cheapest_fare
from fare_funnel.utils.logging import setup_logging
from fare_funnel.utils.retry import RetryConfig, retry_async
from fare_funnel.utils.waiting import CancelToken, bounded_wait

logger = logging.getLogger(__name__)

# Create the CLI app
app = typer.Typer(
    name="fare-funnel",
    help="State detection and cheapest-fare selection for booking funnels",
    add_completion=False,
)

console = Console()

EXIT_FAILED = 1
EXIT_CANCELLED = 130

# A job drives one resolver (one isolated session) and returns a summary line
Job = Callable[[StateSignalResolver], Awaitable[str]]


def _load_settings(
    config: Optional[str],
    verbose: bool,
    browsers: Optional[List[str]] = None,
    visible: bool = False,
    timeout: Optional[float] = None,
    retries: Optional[int] = None,
) -> Settings:
    """Load settings from config/env, then apply CLI overrides."""
    overrides: Dict[str, Any] = {}
    if browsers:
        overrides.setdefault("browser", {})["browser_types"] = [b.lower() for b in browsers]
    if visible:
        overrides.setdefault("browser", {})["headless"] = False
    if timeout is not None:
        overrides["run_timeout_s"] = timeout
    if retries is not None:
        overrides.setdefault("detection", {})["retry_attempts"] = retries
    if verbose:
        overrides.setdefault("logging", {})["level"] = "DEBUG"

    try:
        settings = load_config(config_path=config, **overrides)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        raise typer.Exit(EXIT_FAILED)
    except ValidationError as e:
        console.print(f"[red]Invalid settings:[/red]\n{e}")
        raise typer.Exit(EXIT_FAILED)

    setup_logging(
        level="DEBUG" if settings.debug else settings.logging.level,
        log_file=settings.logging.file,
        json_format=settings.logging.json_format,
        fmt=settings.logging.format,
    )
    return settings


def _resolve_url(url: str, base_url: str) -> str:
    """Absolute URLs pass through; anything else is taken relative to base_url."""
    if url.startswith(("http://", "https://")):
        return url
    return urljoin(base_url.rstrip("/") + "/", url.lstrip("/"))


def _normalize_cabin(cabin: Optional[str]) -> Optional[str]:
    if cabin is None:
        return None
    for option in CABIN_OPTIONS:
        if option.lower() == " ".join(cabin.split()).lower():
            return option
    console.print(f"[red]Unknown cabin: {cabin}[/red] (choose from: {', '.join(CABIN_OPTIONS)})")
    raise typer.Exit(EXIT_FAILED)


# ─────────────────────────────────────────────────────────────
# Commands
# ─────────────────────────────────────────────────────────────

@app.command()
def states():
    """
    List the target states and their detection chains.
    """
    table = Table(title="Target States")
    table.add_column("State", style="cyan")
    table.add_column("Detection chain (in order)", style="white")

    for label in list_targets():
        target = get_target(label)
        chain = "\n".join(f"{s.name} ({s.timeout_s:g}s)" for s in target.strategies)
        table.add_row(label, chain)

    console.print(table)


@app.command()
def probe(
    url: str = typer.Argument(..., help="Page to open (absolute URL, or a path on the base URL)"),
    state: str = typer.Option(..., "--state", "-s", help="Target state to await (see `fare-funnel states`)"),
    budget: Optional[float] = typer.Option(None, "--budget", min=0.1, help="Detection budget in seconds"),
    browser: Optional[List[str]] = typer.Option(None, "--browser", "-b", help="chromium, firefox or webkit; repeat for several"),
    visible: bool = typer.Option(False, "--visible", "-v", help="Run with visible browser"),
    timeout: Optional[float] = typer.Option(None, "--timeout", "-t", help="Overall run timeout in seconds"),
    retries: Optional[int] = typer.Option(None, "--retries", min=0, help="Retries when the state is not reached"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to config file"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable verbose output"),
):
    """
    Open a page and wait until a target state is detected.

    Examples:
        fare-funnel probe https://example.com/booking --state results
        fare-funnel probe /en/booking --state payment -b chromium -b firefox
    """
    settings = _load_settings(config, verbose, browser, visible, timeout, retries)

    try:
        target = get_target(state)
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(EXIT_FAILED)

    page_url = _resolve_url(url, settings.browser.base_url)
    retry_config = RetryConfig(
        max_attempts=settings.detection.retry_attempts + 1,
        initial_delay_ms=1000,
        retry_on=(StateNotReachedError,),
    )

    console.print(Panel.fit(
        f"[bold blue]🔎 Fare Funnel probe[/bold blue]\n"
        f"[dim]URL:[/dim] {page_url}\n"
        f"[dim]State:[/dim] {target.label} ({', '.join(target.strategy_names)})\n"
        f"[dim]Browsers:[/dim] {', '.join(settings.browser.browser_types)}",
        border_style="blue",
    ))

    async def job(resolver: StateSignalResolver) -> str:
        outcome = await retry_async(resolver.await_state, retry_config, target, budget)
        return str(outcome)

    raise typer.Exit(_run(settings, page_url, job))


@app.command()
def pick(
    url: str = typer.Argument(..., help="Results page to open (absolute URL, or a path on the base URL)"),
    cabin: Optional[str] = typer.Option(None, "--cabin", help="Economy, Premium Economy or Business Class"),
    no_expand: bool = typer.Option(False, "--no-expand", help="Fare section is already open; skip clicking the first result"),
    budget: Optional[float] = typer.Option(None, "--budget", min=0.1, help="Budget for the results page in seconds"),
    browser: Optional[List[str]] = typer.Option(None, "--browser", "-b", help="chromium, firefox or webkit; repeat for several"),
    visible: bool = typer.Option(False, "--visible", "-v", help="Run with visible browser"),
    timeout: Optional[float] = typer.Option(None, "--timeout", "-t", help="Overall run timeout in seconds"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to config file"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable verbose output"),
):
    """
    Open a results page and select the cheapest fare in a cabin.

    Examples:
        fare-funnel pick https://example.com/booking/results
        fare-funnel pick /en/booking/results --cabin "Business Class" --visible
    """
    settings = _load_settings(config, verbose, browser, visible, timeout)
    chosen_cabin = _normalize_cabin(cabin) or settings.selection.default_cabin
    page_url = _resolve_url(url, settings.browser.base_url)

    console.print(Panel.fit(
        f"[bold blue]💺 Fare Funnel pick[/bold blue]\n"
        f"[dim]URL:[/dim] {page_url}\n"
        f"[dim]Cabin:[/dim] {chosen_cabin}\n"
        f"[dim]Browsers:[/dim] {', '.join(settings.browser.browser_types)}",
        border_style="blue",
    ))

    async def job(resolver: StateSignalResolver) -> str:
        await resolver.await_state("results", budget)
        if not no_expand:
            await expand_first_result(resolver, settings.selection)
        outcome = await select_cheapest_fare(resolver, chosen_cabin, settings.selection)
        return str(outcome)

    raise typer.Exit(_run(settings, page_url, job))


@app.command()
def version():
    """Show version information."""
    console.print(f"[bold]Fare Funnel[/bold] v{__version__}")


# ─────────────────────────────────────────────────────────────
# Runner
# ─────────────────────────────────────────────────────────────

def _run(settings: Settings, url: str, job: Job) -> int:
    """Run a job on every configured engine and map the results to an exit code."""
    results = asyncio.run(_run_engines(settings, url, job))

    exit_code = 0
    for engine, result in results.items():
        if isinstance(result, Cancelled):
            console.print(f"[yellow]{engine}: cancelled ({result.message})[/yellow]")
            exit_code = EXIT_CANCELLED
        elif isinstance(result, FareFunnelError):
            console.print(f"[red]{engine}: ✗ {result}[/red]")
            if exit_code == 0:
                exit_code = EXIT_FAILED
        elif isinstance(result, BaseException):
            raise result
        else:
            console.print(f"[green]{engine}:[/green] {result}")
    return exit_code


async def _run_engines(settings: Settings, url: str, job: Job) -> Dict[str, Any]:
    """One isolated session per engine, all sharing the run's cancel token."""
    token = CancelToken()
    loop = asyncio.get_running_loop()
    timer = loop.call_later(settings.run_timeout_s, token.cancel, f"run timeout ({settings.run_timeout_s:g}s)")

    handles_sigint = True
    try:
        loop.add_signal_handler(signal.SIGINT, token.cancel, "interrupted")
    except (NotImplementedError, RuntimeError):
        # Windows event loops have no signal handlers
        handles_sigint = False

    engines = settings.browser.browser_types
    try:
        results = await asyncio.gather(
            *(_run_engine(engine, settings, url, token, job) for engine in engines),
            return_exceptions=True,
        )
    finally:
        timer.cancel()
        if handles_sigint:
            loop.remove_signal_handler(signal.SIGINT)

    return dict(zip(engines, results))


async def _run_engine(
    engine: str,
    settings: Settings,
    url: str,
    token: CancelToken,
    job: Job,
) -> str:
    browser_settings = settings.browser

    async with PlaywrightBrowser(engine, headless=browser_settings.headless, slow_mo=browser_settings.slow_mo) as browser:
        session = await browser.new_session(
            viewport_width=browser_settings.viewport_width,
            viewport_height=browser_settings.viewport_height,
            timeout_ms=browser_settings.timeout_ms,
            navigation_timeout_ms=browser_settings.navigation_timeout_ms,
        )
        resolver = StateSignalResolver(session, settings.detection, cancel=token)

        async def drive() -> str:
            await session.goto(url)
            await resolver.accept_transient_overlay()
            return await job(resolver)

        _, summary = await bounded_wait(drive(), None, token, f"{engine} run")
        logger.debug(f"{engine}: done")
        return summary


if __name__ == "__main__":
    app()
