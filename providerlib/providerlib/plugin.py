import itertools
import sys
from abc import ABC, abstractmethod
from threading import Lock
from typing import Any, Dict, List, Optional, Sequence

from attrs import define

from providerlib.args import ArgumentParser, get_arg_parser
from providerlib.config import Config
from providerlib.errors import ConnectionNotFoundError, ProviderError
from providerlib.inventory import Asset, Inventory
from providerlib.json import to_json_str
from providerlib.logger import LoggingConfig, add_args as add_logging_args, log, setup_logger


@define
class ConnectResult:
    """The connected asset and, when discovery was requested, the inventory found behind it."""

    id: str
    name: str
    asset: Asset
    inventory: Optional[Inventory] = None


class ProviderPlugin(ABC):
    """A provider turns command line arguments into assets and connects to them.

    The host calls `parse_cli` to build the initial asset, then `connect` to
    resolve it. `connect` fills the asset with platform information and returns
    it next to the discovered inventory.
    """

    provider_name: str = "provider"

    def __init__(self) -> None:
        self._connections: Dict[str, Any] = {}
        self._connection_ids = itertools.count(1)
        self._lock = Lock()

    @staticmethod
    def add_args(arg_parser: ArgumentParser) -> None:
        """Adds plugin specific arguments to the global arg parser"""
        pass

    @staticmethod
    def add_config(config: Config) -> None:
        """Override when the plugin has a config section"""
        pass

    @abstractmethod
    def parse_cli(self, args: List[str], flags: Dict[str, Any]) -> Asset:
        pass

    @abstractmethod
    def connect(self, asset: Asset) -> ConnectResult:
        pass

    def mock_connect(self, asset: Asset) -> ConnectResult:
        raise NotImplementedError(f"{self.provider_name} provider does not support mock connections")

    def shutdown(self) -> None:
        with self._lock:
            for connection in self._connections.values():
                if close := getattr(connection, "close", None):
                    close()
            self._connections.clear()

    def register_connection(self, connection: Any) -> str:
        with self._lock:
            connection_id = str(next(self._connection_ids))
            self._connections[connection_id] = connection
            return connection_id

    def connection(self, connection_id: str) -> Any:
        with self._lock:
            if (conn := self._connections.get(connection_id)) is None:
                raise ConnectionNotFoundError(f"connection {connection_id} not found")
            return conn

    @classmethod
    def main(cls, argv: Optional[Sequence[str]] = None) -> int:
        """Console entry point: parse the command line, connect and print the result as json."""
        arg_parser = get_arg_parser(description=f"{cls.provider_name} inventory provider")
        add_logging_args(arg_parser)
        Config.add_args(arg_parser)
        cls.add_args(arg_parser)
        args = arg_parser.parse_args(argv)
        Config.add_config(LoggingConfig)
        cls.add_config(Config)  # type: ignore
        if args.config_file:
            Config.load_file(args.config_file)
        Config.init_default_config()
        Config.override_config(args.config_override)
        setup_logger(
            f"provider-{cls.provider_name}",
            verbose=args.verbose or Config.logging.verbose,
            quiet=args.quiet or Config.logging.quiet,
            json_format=Config.logging.json_format,
        )

        plugin = cls()
        try:
            asset = plugin.parse_cli(list(args.target or []), vars(args))
            result = plugin.connect(asset)
        except ProviderError as e:
            log.error(f"{cls.provider_name}: {e}")
            return 1
        finally:
            plugin.shutdown()
        # secrets stay in the process
        sys.stdout.write(to_json_str(result, strip_attr="credentials", strip_nulls=True, indent=2) + "\n")
        return 0
