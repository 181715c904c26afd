"""Main CLI entry point for the taint reconciler."""

import signal
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from taint_reconciler.exceptions import ConfigurationError, ListError
from taint_reconciler.logging_config import get_logger, setup_logging
from taint_reconciler.models.config import ReconcilerConfig

app = typer.Typer(
    name="taint-reconciler",
    help="Remove the unregistered taint from nodes that have been Ready long enough",
    add_completion=False,
)

console = Console()
logger = get_logger(__name__)


# Global callback to set up logging
@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    log_file: str | None = typer.Option(None, "--log-file", help="Path to log file"),
):
    """Global options for all commands."""
    log_path = Path(log_file) if log_file else None
    setup_logging(verbose=verbose, log_file=log_path)
    logger.debug("Logging initialized")


def _load_config(config_path: str | None, interval: float | None = None) -> ReconcilerConfig:
    config = ReconcilerConfig.load(config_path) if config_path else ReconcilerConfig()
    if interval is not None:
        config = ReconcilerConfig(**{**config.model_dump(), "interval_seconds": interval})
    return config


def _print_error(title: str, message: str, details: str | None = None) -> None:
    console.print(f"[red]{title}:[/red] {message}")
    if details:
        console.print(f"\n{details}")


@app.command()
def version() -> None:
    """Show version information."""
    from taint_reconciler import __version__

    typer.echo(f"taint-reconciler version {__version__}")


@app.command()
def run(
    config_path: str | None = typer.Option(
        None, "--config", "-c", help="Path to a YAML reconciler configuration"
    ),
    kubeconfig: str | None = typer.Option(None, "--kubeconfig", help="Path to kubeconfig"),
    in_cluster: bool = typer.Option(
        False, "--in-cluster", help="Use the pod's service account instead of kubeconfig"
    ),
    interval: float | None = typer.Option(
        None, "--interval", help="Seconds between reconcile passes (overrides config)"
    ),
    once: bool = typer.Option(False, "--once", help="Run a single pass and exit"),
) -> None:
    """
    Run the reconciler against the cluster.

    Every pass lists registered nodes and removes the unregistered taint from
    those whose Ready condition has held for the stabilization window.

    Examples:
        # Run continuously with defaults
        taint-reconciler run

        # Single pass with a custom configuration
        taint-reconciler run --once --config reconciler.yml
    """
    from pydantic import ValidationError

    from taint_reconciler.reconciler import TaintReconciler
    from taint_reconciler.runner import ReconcileLoop
    from taint_reconciler.store import KubernetesNodeStore

    try:
        config = _load_config(config_path, interval)
        store = KubernetesNodeStore.from_kubeconfig(
            kubeconfig, in_cluster=in_cluster, request_timeout=config.request_timeout_seconds
        )
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e.message}")
        _print_error("Configuration Error", e.message, e.details)
        raise typer.Exit(code=1)
    except ValidationError as e:
        _print_error("Configuration Error", "Invalid option value", str(e))
        raise typer.Exit(code=1)

    loop = ReconcileLoop(TaintReconciler(store, config))

    if once:
        try:
            result = loop.run_once()
        except ListError as e:
            _print_error("Error", e.message, e.details)
            raise typer.Exit(code=1)

        console.print(f"[bold]Removed:[/bold] {len(result.removed)}")
        console.print(f"[bold]Skipped:[/bold] {len(result.skipped)}")
        console.print(f"[bold]Failed:[/bold] {len(result.failed)}")
        for outcome in result.failed:
            console.print(f"  [red]✗[/red] {outcome.name}: {outcome.error}")
        if result.failed:
            raise typer.Exit(code=2)
        return

    def handle_signal(signum, _frame):
        logger.info(f"Received signal {signum}, stopping")
        loop.stop()

    signal.signal(signal.SIGTERM, handle_signal)
    signal.signal(signal.SIGINT, handle_signal)
    # SIGHUP asks for an immediate pass
    if hasattr(signal, "SIGHUP"):
        signal.signal(signal.SIGHUP, lambda _signum, _frame: loop.trigger())

    loop.run()


@app.command()
def check(
    config_path: str | None = typer.Option(
        None, "--config", "-c", help="Path to a YAML reconciler configuration"
    ),
    kubeconfig: str | None = typer.Option(None, "--kubeconfig", help="Path to kubeconfig"),
    in_cluster: bool = typer.Option(
        False, "--in-cluster", help="Use the pod's service account instead of kubeconfig"
    ),
) -> None:
    """
    Show which registered nodes would have their taint removed.

    Read-only: nothing is patched.
    """
    from taint_reconciler.reconciler import TaintReconciler, has_unregistered_taint
    from taint_reconciler.store import KubernetesNodeStore

    try:
        config = _load_config(config_path)
        store = KubernetesNodeStore.from_kubeconfig(
            kubeconfig, in_cluster=in_cluster, request_timeout=config.request_timeout_seconds
        )
        reconciler = TaintReconciler(store, config)
        nodes = store.list_nodes(config.registered_label_key)
    except ConfigurationError as e:
        _print_error("Configuration Error", e.message, e.details)
        raise typer.Exit(code=1)
    except ListError as e:
        _print_error("Error", e.message, e.details)
        raise typer.Exit(code=1)

    if not nodes:
        console.print("[yellow]No registered nodes found[/yellow]")
        return

    now = reconciler.clock()
    table = Table(title="Registered Nodes")
    table.add_column("Name", style="cyan")
    table.add_column("Unregistered Taint", style="magenta")
    table.add_column("Ready Since", style="green")
    table.add_column("Eligible", style="yellow")

    eligible_count = 0
    for node in sorted(nodes, key=lambda n: n.name):
        condition = node.ready_condition()
        if condition and condition.is_true and condition.last_transition_time:
            ready_for = int((now - condition.last_transition_time).total_seconds())
            ready = f"{ready_for}s"
        else:
            ready = "[red]NotReady[/red]"

        eligible = reconciler.is_eligible(node, now)
        eligible_count += eligible
        table.add_row(
            node.name,
            "Yes" if has_unregistered_taint(node, config.unregistered_taint_key) else "No",
            ready,
            "[green]✓[/green]" if eligible else "✗",
        )

    console.print(table)
    console.print(f"\n[bold]Total nodes:[/bold] {len(nodes)}")
    console.print(f"[bold]Eligible:[/bold] {eligible_count}")


if __name__ == "__main__":
    app()
