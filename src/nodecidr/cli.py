"""Command-line interface for the node CIDR controller."""

import asyncio
import signal
from pathlib import Path

import structlog
import typer
from rich.console import Console
from rich.table import Table

from .config import ControllerConfig, load_config
from .constants import CONTROLLER_NAME
from .controller.manager import NodeController
from .controller.reconciler import NodeReconciler
from .core.resolver import NodeCIDRResolver
from .kube.nodes import Kr8sNodeStore
from .netbox.client import NetBoxClient
from .observability.logger import configure_logging
from .observability.health import create_health_app, serve_health
from .observability.metrics import bucket_for, get_global_collector, start_metrics_server
from .utils.exceptions import CardinalityError, ResolutionError

app = typer.Typer(
    name="nodecidr",
    help="Populate Kubernetes node pod CIDRs from NetBox",
    add_completion=False,
)

console = Console()
logger = structlog.get_logger(__name__)


def _build_config(
    config_file: Path | None,
    netbox_url: str | None,
    netbox_token: str | None,
) -> ControllerConfig:
    try:
        config = load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]ERROR: Invalid configuration:[/red] {e}")
        raise typer.Exit(code=2) from e

    if netbox_url:
        config.netbox.base_url = netbox_url
    if netbox_token:
        config.netbox.token = netbox_token
    return config


async def _run_controller(config: ControllerConfig) -> None:
    collector = get_global_collector(config.metrics.backend)
    if config.metrics.port and collector.registry is not None:
        start_metrics_server(collector, config.metrics.port, config.metrics.bind_address)

    async with NetBoxClient(config.netbox, collector) as netbox:
        nodes = Kr8sNodeStore(context=config.kubernetes.context)
        reconciler = NodeReconciler(
            NodeCIDRResolver(netbox),
            nodes,
            collector,
            resolve_timeout=config.reconcile.resolve_timeout,
        )
        controller = NodeController(reconciler, nodes, config.reconcile, collector)

        main_task = asyncio.current_task()
        if main_task is not None:
            asyncio.get_running_loop().add_signal_handler(signal.SIGTERM, main_task.cancel)

        health_task = None
        if config.metrics.health_port:
            app = create_health_app(lambda: controller.running)
            health_task = asyncio.create_task(
                serve_health(app, config.metrics.health_port, config.metrics.bind_address),
                name="health",
            )
        try:
            await controller.run()
        finally:
            if health_task is not None:
                health_task.cancel()
                await asyncio.gather(health_task, return_exceptions=True)


async def _resolve_once(config: ControllerConfig, hostname: str, timeout: float | None) -> str:
    async with NetBoxClient(config.netbox) as netbox:
        return await NodeCIDRResolver(netbox).resolve(hostname, timeout=timeout)


@app.command()
def run(
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Configuration file"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
    kubecontext: str | None = typer.Option(
        None, "--kubecontext", help="The context to use from kubeconfig"
    ),
    netbox_url: str | None = typer.Option(
        None, "--netbox-url", help="The NetBox to query for the node"
    ),
    netbox_token: str | None = typer.Option(
        None, "--netbox-token", help="The NetBox token to use"
    ),
    workers: int | None = typer.Option(
        None, "--workers", "-w", min=1, help="Number of concurrent reconcile workers"
    ),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit logs as JSON"),
    metrics_port: int | None = typer.Option(
        None, "--metrics-port", min=0, help="Prometheus metrics port (0 disables)"
    ),
    health_port: int | None = typer.Option(
        None, "--health-port", min=0, help="Health probe port (0 disables)"
    ),
) -> None:
    """
    Run the controller: watch nodes and fill in missing pod CIDRs.

    Examples:
        nodecidr run --netbox-token $TOKEN
        nodecidr run --config nodecidr.yaml --debug
    """
    config = _build_config(config_file, netbox_url, netbox_token)
    if kubecontext:
        config.kubernetes.context = kubecontext
    if workers:
        config.reconcile.workers = workers
    if metrics_port is not None:
        config.metrics.port = metrics_port
    if health_port is not None:
        config.metrics.health_port = health_port

    configure_logging(
        level="DEBUG" if debug else config.logging.level,
        json_logs=json_logs or config.logging.format == "json",
        log_file=config.logging.file,
    )
    log = logger.bind(controller=CONTROLLER_NAME)

    if not config.netbox.token:
        log.warning("No NetBox token configured, requests are anonymous")

    log.info(
        "Starting",
        netbox_url=config.netbox.base_url,
        kubecontext=config.kubernetes.context,
        workers=config.reconcile.workers,
        metrics_port=config.metrics.port,
        health_port=config.metrics.health_port,
    )
    try:
        asyncio.run(_run_controller(config))
    except (KeyboardInterrupt, asyncio.CancelledError):
        log.info("Shutting down")


@app.command()
def resolve(
    hostname: str = typer.Argument(..., help="Node name to look up in NetBox"),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Configuration file"),
    netbox_url: str | None = typer.Option(None, "--netbox-url", help="NetBox base URL"),
    netbox_token: str | None = typer.Option(None, "--netbox-token", help="NetBox API token"),
    timeout: float | None = typer.Option(
        None, "--timeout", "-t", help="Resolution deadline in seconds"
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """
    Resolve a hostname to its pod CIDR without touching Kubernetes.

    Examples:
        nodecidr resolve node001.cc.example.com
        nodecidr resolve node001 --netbox-url https://netbox.example.com -t 10
    """
    config = _build_config(config_file, netbox_url, netbox_token)
    configure_logging(level="DEBUG" if debug else "WARNING")

    try:
        cidr = asyncio.run(_resolve_once(config, hostname, timeout))
    except ResolutionError as e:
        table = Table(title=f"Resolution failed for {hostname}", show_header=False)
        table.add_row("Error", type(e).__name__)
        table.add_row("Counter", bucket_for(e).value)
        if isinstance(e, CardinalityError):
            table.add_row("Stage", e.context)
            table.add_row("Results", str(e.got))
        table.add_row("Message", str(e))
        console.print(table)
        raise typer.Exit(code=1) from e

    console.print(cidr)


if __name__ == "__main__":
    app()
