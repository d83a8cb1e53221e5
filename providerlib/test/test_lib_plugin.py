import json
from typing import Any, Dict, List

import pytest
from _pytest.capture import CaptureFixture

from providerlib.args import ArgumentParser
from providerlib.config import Config
from providerlib.errors import ConfigurationError, ConnectionNotFoundError, DiscoveryError
from providerlib.inventory import Asset, Config as ConnectionConfig, Credential, Inventory, with_parent_connection_id
from providerlib.plugin import ConnectResult, ProviderPlugin


class Closable:
    closed = False

    def close(self) -> None:
        self.closed = True


class EchoPlugin(ProviderPlugin):
    provider_name = "echo"

    @staticmethod
    def add_args(arg_parser: ArgumentParser) -> None:
        arg_parser.add_argument("target", nargs="*")

    def parse_cli(self, args: List[str], flags: Dict[str, Any]) -> Asset:
        if not args:
            raise ConfigurationError("missing argument")
        conf = ConnectionConfig(type="echo", host=args[0], credentials=[Credential.password("u", "secret")])
        return Asset(connections=[conf])

    def connect(self, asset: Asset) -> ConnectResult:
        conf = asset.connections[0]
        if conf.host == "unreachable":
            raise DiscoveryError("listing failed")
        conf.id = self.register_connection(Closable())
        asset.name = conf.host
        child = Asset(name="child", connections=[conf.clone(with_parent_connection_id(conf.id))])
        return ConnectResult(conf.id, asset.name or "", asset, Inventory([child]))


def test_connections() -> None:
    plugin = EchoPlugin()
    first, second = Closable(), Closable()
    first_id = plugin.register_connection(first)
    second_id = plugin.register_connection(second)
    assert first_id != second_id
    assert plugin.connection(first_id) is first
    with pytest.raises(ConnectionNotFoundError):
        plugin.connection("unknown")
    plugin.shutdown()
    assert first.closed and second.closed
    with pytest.raises(ConnectionNotFoundError):
        plugin.connection(first_id)


def test_mock_connect() -> None:
    with pytest.raises(NotImplementedError):
        EchoPlugin().mock_connect(Asset())


def test_main(capsys: CaptureFixture[str]) -> None:
    Config.reset()
    assert EchoPlugin.main(["somehost"]) == 0
    result = json.loads(capsys.readouterr().out)
    assert result["id"] == "1"
    assert result["name"] == "somehost"
    asset = result["asset"]
    assert asset["name"] == "somehost"
    (child,) = result["inventory"]["assets"]
    assert child["connections"][0]["parent_connection_id"] == "1"
    # secrets are never printed
    assert "credentials" not in asset["connections"][0]
    assert "credentials" not in child["connections"][0]


def test_main_error() -> None:
    Config.reset()
    assert EchoPlugin.main([]) == 1
    Config.reset()
    assert EchoPlugin.main(["unreachable"]) == 1
