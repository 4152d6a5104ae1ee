"""Unit tests for CLI interface."""

from unittest.mock import AsyncMock, patch

import pytest
import respx
import typer
from httpx import Response
from typer.testing import CliRunner

from nodecidr.cli import _run_controller, app
from nodecidr.config import ControllerConfig
from nodecidr.observability.metrics import MetricsCollector

API = "http://netbox.test/api"


def _page(*results):
    return {"count": len(results), "results": list(results)}


class TestCLI:
    """Test CLI interface."""

    def setup_method(self):
        self.runner = CliRunner()

    def test_cli_app_structure(self):
        assert isinstance(app, typer.Typer)

    def test_resolve_prints_cidr(self):
        with respx.mock(base_url=API) as respx_mock:
            respx_mock.get("/ipam/ip-addresses/", params={"q": "node001"}).mock(
                return_value=Response(
                    200,
                    json=_page(
                        {
                            "id": 1,
                            "address": "10.99.0.1/32",
                            "assigned_object_type": "dcim.interface",
                            "assigned_object": {"id": 5, "device": {"id": 7}},
                        }
                    ),
                )
            )
            respx_mock.get("/dcim/interfaces/").mock(
                return_value=Response(200, json=_page({"id": 42, "name": "cbr0"}))
            )
            respx_mock.get("/ipam/ip-addresses/", params={"interface_id": "42"}).mock(
                return_value=Response(200, json=_page({"id": 2, "address": "10.0.1.5/24"}))
            )

            result = self.runner.invoke(
                app, ["resolve", "node001", "--netbox-url", "http://netbox.test"]
            )

        assert result.exit_code == 0, result.output
        assert "10.0.1.0/24" in result.stdout

    def test_resolve_reports_classified_error(self):
        with respx.mock(base_url=API) as respx_mock:
            respx_mock.get("/ipam/ip-addresses/").mock(
                return_value=Response(200, json=_page())
            )

            result = self.runner.invoke(
                app, ["resolve", "ghost", "--netbox-url", "http://netbox.test"]
            )

        assert result.exit_code == 1
        assert "AddressCardinalityError" in result.stdout
        assert "netbox_result_fails" in result.stdout
        assert "hostname" in result.stdout

    def test_resolve_missing_config_file(self, tmp_path):
        result = self.runner.invoke(
            app, ["resolve", "node001", "--config", str(tmp_path / "missing.yaml")]
        )

        assert result.exit_code == 2
        assert "Invalid configuration" in result.stdout

    @patch("nodecidr.cli.configure_logging")
    @patch("nodecidr.cli._run_controller", new_callable=AsyncMock)
    def test_run_applies_overrides(self, mock_run, mock_logging):
        result = self.runner.invoke(
            app,
            [
                "run",
                "--netbox-url",
                "https://nb.test",
                "--netbox-token",
                "tok",
                "--kubecontext",
                "qa",
                "--workers",
                "3",
                "--debug",
            ],
        )

        assert result.exit_code == 0, result.output
        config = mock_run.await_args.args[0]
        assert config.netbox.base_url == "https://nb.test"
        assert config.netbox.token == "tok"
        assert config.kubernetes.context == "qa"
        assert config.reconcile.workers == 3
        assert mock_logging.call_args.kwargs["level"] == "DEBUG"

    @patch("nodecidr.cli.configure_logging")
    @patch("nodecidr.cli._run_controller", new_callable=AsyncMock)
    def test_run_port_overrides(self, mock_run, mock_logging):
        result = self.runner.invoke(app, ["run", "--metrics-port", "0", "--health-port", "8081"])

        assert result.exit_code == 0, result.output
        config = mock_run.await_args.args[0]
        assert config.metrics.port == 0
        assert config.metrics.health_port == 8081


class TestRunController:
    """Test process wiring of the controller command."""

    @pytest.mark.asyncio
    async def test_serves_metrics_and_health(self):
        config = ControllerConfig()
        collector = MetricsCollector(backend="prometheus")
        with (
            patch("nodecidr.cli.get_global_collector", return_value=collector),
            patch("nodecidr.cli.start_metrics_server") as mock_metrics,
            patch("nodecidr.cli.serve_health", new_callable=AsyncMock) as mock_health,
            patch("nodecidr.cli.NodeController") as controller_cls,
        ):
            controller_cls.return_value.run = AsyncMock()

            await _run_controller(config)

        mock_metrics.assert_called_once_with(collector, 32280, "0.0.0.0")
        assert mock_health.call_args.args[1] == 32281
        controller_cls.return_value.run.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_listeners_can_be_disabled(self):
        config = ControllerConfig()
        config.metrics.port = 0
        config.metrics.health_port = 0
        with (
            patch("nodecidr.cli.get_global_collector", return_value=MetricsCollector()),
            patch("nodecidr.cli.start_metrics_server") as mock_metrics,
            patch("nodecidr.cli.serve_health", new_callable=AsyncMock) as mock_health,
            patch("nodecidr.cli.NodeController") as controller_cls,
        ):
            controller_cls.return_value.run = AsyncMock()

            await _run_controller(config)

        mock_metrics.assert_not_called()
        mock_health.assert_not_called()
