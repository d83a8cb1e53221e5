import getpass
from typing import Any, Dict, List, Optional, Tuple

from providerlib.args import ArgumentParser
from providerlib.config import Config
from providerlib.errors import ConfigurationError
from providerlib.inventory import Asset, Config as ConnectionConfig, Credential, Platform
from providerlib.plugin import ConnectResult, ProviderPlugin
from .config import IpmiConfig
from .connection import ConnectionType, IpmiConnection, log

CliUsage = "missing argument, use `ipmi user@host[:port]`"


def parse_target(target: str, default_port: int = 623) -> Tuple[str, str, int]:
    """
    user@host[:port] -> (user, host, port)
    """
    user, at, address = target.rpartition("@")
    if not at or not user or not address:
        raise ConfigurationError(f"invalid ipmi target {target}, use user@host[:port]")
    host, port = address, default_port
    if address.startswith("["):
        # [ipv6]:port
        host, _, rest = address[1:].partition("]")
        if rest.startswith(":"):
            port = parse_port(rest[1:])
    elif address.count(":") == 1:
        host, port_str = address.split(":")
        port = parse_port(port_str)
    if not host:
        raise ConfigurationError(f"invalid ipmi target {target}, host is missing")
    return user, host, port


def parse_port(value: str) -> int:
    try:
        port = int(value)
    except ValueError as e:
        raise ConfigurationError(f"invalid ipmi port {value}") from e
    if not 0 < port < 65536:
        raise ConfigurationError(f"invalid ipmi port {value}")
    return port


class IpmiProviderPlugin(ProviderPlugin):
    """IPMI inventory provider: one asset per baseboard management controller."""

    provider_name = "ipmi"

    def __init__(self, config: Optional[IpmiConfig] = None) -> None:
        super().__init__()
        self.config = config

    @staticmethod
    def add_args(arg_parser: ArgumentParser) -> None:
        arg_parser.add_argument("target", nargs="*", help="The BMC to connect to: user@host[:port]")
        arg_parser.add_argument("--password", dest="password", default=None, help="Password of the ipmi user")
        arg_parser.add_argument(
            "--ask-pass",
            dest="ask_pass",
            action="store_true",
            default=False,
            help="Prompt for the password of the ipmi user",
        )

    @staticmethod
    def add_config(config: Config) -> None:
        config.add_config(IpmiConfig)

    @property
    def ipmi_config(self) -> IpmiConfig:
        if self.config is None:
            try:
                self.config = Config.ipmi
            except AttributeError:
                self.config = IpmiConfig()
        return self.config

    def parse_cli(self, args: List[str], flags: Dict[str, Any]) -> Asset:
        if len(args) != 1:
            raise ConfigurationError(CliUsage)
        user, host, port = parse_target(args[0], self.ipmi_config.port)
        password = flags.get("password")
        if password is None and flags.get("ask_pass"):
            password = getpass.getpass(f"Enter password for {user}@{host}: ")
        conf = ConnectionConfig(
            type=ConnectionType, host=host, port=port, credentials=[Credential.password(user, password or "")]
        )
        return Asset(connections=[conf])

    def connect(self, asset: Asset) -> ConnectResult:
        if not asset.connections:
            raise ConfigurationError("asset has no connection config")
        conf = asset.connections[0]
        conn = IpmiConnection("", conf, self.ipmi_config.timeout)
        conn.id = conf.id = self.register_connection(conn)
        guid = conn.device_guid()
        log.debug(f"Connected to ipmi device {guid} at {conn.host}:{conn.port}")
        asset.name = asset.name or f"IPMI device {conn.host}"
        asset.platform_ids = [conn.platform_id]
        asset.platform = Platform(
            name="ipmi",
            title="IPMI",
            runtime=ConnectionType,
            kind="api",
            family=["ipmi"],
            technology_url_segments=["ipmi", guid],
        )
        return ConnectResult(conn.id, asset.name or conn.host, asset)
