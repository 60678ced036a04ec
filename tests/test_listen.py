"""Tests for perch.server.listen: address parsing and the pounce bridge."""

import logging
import sys
import types

import pytest

from perch.config import Config
from perch.errors import ConfigurationError
from perch.group import new
from perch.server.listen import parse_address, run_server


class TestParseAddress:
    def test_port_only(self) -> None:
        assert parse_address(":8080") == ("0.0.0.0", 8080)

    def test_host_and_port(self) -> None:
        assert parse_address("localhost:9000") == ("localhost", 9000)

    def test_ipv6(self) -> None:
        assert parse_address("[::1]:8080") == ("::1", 8080)

    def test_custom_default_host(self) -> None:
        assert parse_address(":80", default_host="127.0.0.1") == ("127.0.0.1", 80)

    @pytest.mark.parametrize("address", ["8080", "host:", "host:http", ":70000", ":-1"])
    def test_invalid(self, address: str) -> None:
        with pytest.raises(ConfigurationError):
            parse_address(address)


@pytest.fixture
def fake_pounce(monkeypatch: pytest.MonkeyPatch):
    """Install a stand-in for the pounce server that records what it is given."""
    calls: dict = {}

    class ServerConfig:
        def __init__(self, **kwargs) -> None:
            calls["config"] = kwargs

    class Server:
        def __init__(self, config, app) -> None:
            calls["app"] = app

        def run(self) -> None:
            calls["ran"] = True

    package = types.ModuleType("pounce")
    config_module = types.ModuleType("pounce.config")
    config_module.ServerConfig = ServerConfig
    server_module = types.ModuleType("pounce.server")
    server_module.Server = Server
    monkeypatch.setitem(sys.modules, "pounce", package)
    monkeypatch.setitem(sys.modules, "pounce.config", config_module)
    monkeypatch.setitem(sys.modules, "pounce.server", server_module)
    return calls


class TestRunServer:
    def test_missing_server_dependency(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setitem(sys.modules, "pounce", None)
        monkeypatch.setitem(sys.modules, "pounce.config", None)
        monkeypatch.setitem(sys.modules, "pounce.server", None)
        router = new()
        with pytest.raises(ConfigurationError, match=r"perch\[server\]"):
            run_server(router, "127.0.0.1", 8000, config=Config(), logger=router.logger)

    def test_runs_pounce(self, fake_pounce, caplog: pytest.LogCaptureFixture) -> None:
        router = new(Config(workers=4, log_level="debug"))
        with caplog.at_level(logging.INFO, logger="perch"):
            run_server(router, "0.0.0.0", 9000, config=router.config, logger=router.logger)

        assert fake_pounce["app"] is router
        assert fake_pounce["ran"] is True
        assert fake_pounce["config"] == {
            "host": "0.0.0.0",
            "port": 9000,
            "workers": 4,
            "log_level": "debug",
        }
        assert "listening @0.0.0.0:9000" in caplog.text


class TestListen:
    def test_listen_with_address(self, fake_pounce) -> None:
        router = new()
        router.get("/", lambda ctx: None)
        router.listen(":8080")

        assert fake_pounce["config"]["host"] == "0.0.0.0"
        assert fake_pounce["config"]["port"] == 8080

    def test_listen_defaults_to_config(self, fake_pounce) -> None:
        router = new(Config(host="127.0.0.2", port=3000))
        router.listen()

        assert fake_pounce["config"]["host"] == "127.0.0.2"
        assert fake_pounce["config"]["port"] == 3000

    def test_listen_freezes(self, fake_pounce) -> None:
        router = new()
        router.listen(":8080")
        with pytest.raises(RuntimeError):
            router.get("/late", lambda ctx: None)

    def test_bad_address(self) -> None:
        router = new()
        with pytest.raises(ConfigurationError):
            router.listen("nowhere")

    def test_server_errors_propagate(self, fake_pounce, monkeypatch: pytest.MonkeyPatch) -> None:
        def fail(self) -> None:
            msg = "address already in use"
            raise OSError(msg)

        monkeypatch.setattr(sys.modules["pounce.server"].Server, "run", fail)
        router = new()
        with pytest.raises(OSError, match="already in use"):
            router.listen(":8080")
