"""Entry point for Connectivity Watch."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import uvicorn
from rich.console import Console
from rich.panel import Panel

from src.config import settings
from src.connectivity.models import Verdict
from src.connectivity.monitor import ConnectivityMonitor
from src.connectivity.registry import ProbeRegistry

console = Console()
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)

_STYLE = {Verdict.CONNECTED: "bold green", Verdict.DISCONNECTED: "bold red"}


def build_monitor(strict: bool | None = None, interval: float | None = None) -> ConnectivityMonitor:
    registry = ProbeRegistry(settings.probes_path, default_timeout=settings.probe_timeout_seconds)
    monitor = ConnectivityMonitor.from_settings(settings, registry)
    monitor.initialize(poll_interval=interval, strict=strict)
    return monitor


def run_server() -> None:
    """Start the FastAPI server."""
    console.print(Panel("Starting Connectivity Watch API", style="bold green"))
    uvicorn.run(
        "src.api.server:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
    )


async def _check(monitor: ConnectivityMonitor) -> Verdict:
    with console.status("[bold green]Probing..."):
        return await monitor.check_once()


async def _watch(monitor: ConnectivityMonitor) -> None:
    config = monitor.config.snapshot()
    console.print(Panel(
        "\n".join(p.target for p in config.probes) or "(no probes)",
        title=f"Watching every {config.poll_interval:g}s, policy={config.policy.value}",
        style="bold blue",
    ))
    async with monitor.status_changes() as changes:
        async for verdict in changes:
            console.print(f"[{_STYLE[verdict]}]{verdict.value}[/]")


def run_check(monitor: ConnectivityMonitor) -> int:
    """Run the probes once; exit status 0 when connected."""
    verdict = asyncio.run(_check(monitor))
    console.print(Panel(verdict.value, title="Connectivity", style=_STYLE[verdict]))
    return 0 if verdict is Verdict.CONNECTED else 1


def run_watch(monitor: ConnectivityMonitor) -> None:
    try:
        asyncio.run(_watch(monitor))
    except KeyboardInterrupt:
        console.print("[dim]Stopped[/dim]")


def main() -> None:
    parser = argparse.ArgumentParser(description="Connectivity Watch")
    sub = parser.add_subparsers(dest="command")

    for name, help_text in (("check", "Probe once and print the verdict"),
                            ("watch", "Stream verdict changes until interrupted")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--strict", action="store_true", default=None,
                       help="Require every probe to succeed")
        if name == "watch":
            p.add_argument("--interval", type=float, default=None,
                           help="Poll interval in seconds")

    sub.add_parser("serve", help="Start the API server")

    args = parser.parse_args()

    if args.command == "serve":
        run_server()
    elif args.command == "check":
        sys.exit(run_check(build_monitor(strict=args.strict)))
    elif args.command == "watch":
        run_watch(build_monitor(strict=args.strict, interval=args.interval))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
