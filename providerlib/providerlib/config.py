import os
from typing import Dict, Any, List, Optional, Type

import yaml
from attrs import fields

from providerlib.args import ArgumentParser, convert
from providerlib.errors import ConfigNotFoundError
from providerlib.json import from_json, to_json, Json
from providerlib.logger import log


class RunningConfig:
    def __init__(self) -> None:
        """Initialize the global config."""
        self.data: Dict[str, Any] = {}
        self.classes: Dict[str, type] = {}
        self.types: Dict[str, Dict[str, type]] = {}


_config = RunningConfig()


class MetaConfig(type):
    def __getattr__(cls, name: str) -> Any:
        if name in _config.data:
            return _config.data[name]
        else:
            raise ConfigNotFoundError(f"No such config {name}")


class Config(metaclass=MetaConfig):
    running_config: RunningConfig = _config

    @staticmethod
    def init_default_config() -> None:
        for config_id, config_data in Config.running_config.classes.items():
            if config_id not in Config.running_config.data:
                log.debug(f"Initializing defaults for config section {config_id}")
                Config.running_config.data[config_id] = config_data()

    @staticmethod
    def add_config(config: object) -> None:
        """Add a config to the config manager.

        Takes an attrs class as input and adds its fields to the config store.
        The class must have a kind ClassVar which specifies the top level config name.
        """
        if hasattr(config, "kind"):
            Config.running_config.classes[config.kind] = config  # type: ignore
            Config.running_config.types[config.kind] = {}
            for field in fields(config):  # type: ignore
                if field.type is not None:
                    Config.running_config.types[config.kind][field.name] = field.type
        else:
            raise RuntimeError("Config must have a 'kind' attribute")

    @staticmethod
    def reset() -> None:
        Config.running_config.data.clear()
        Config.running_config.classes.clear()
        Config.running_config.types.clear()

    @staticmethod
    def read_config(config: Json) -> Dict[str, Any]:
        new_config = {}
        for config_id, config_data in config.items():
            if config_data is None:
                config_data = {}
            if config_id in Config.running_config.classes:
                log.debug(f"Loading config section {config_id}")
                clazz: Type[Any] = Config.running_config.classes[config_id]
                new_config[config_id] = from_json(config_data, clazz)
            else:
                log.warning(f"Unknown config section {config_id}")
        return new_config

    @staticmethod
    def load_file(path: str) -> None:
        """Load the config sections from a YAML file. Sections missing in the file keep their defaults."""
        if len(Config.running_config.classes) == 0:
            raise RuntimeError("No config added")
        with open(os.path.expanduser(path)) as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Config file {path} does not contain a mapping")
        Config.running_config.data.update(Config.read_config(raw))
        Config.init_default_config()

    @staticmethod
    def override_config(overrides: Optional[List[str]]) -> None:
        """Apply overrides of the form section.attribute=value to the running config."""
        for override in overrides or []:
            try:
                path, value = override.split("=", 1)
                config_id, attr = path.split(".", 1)
            except ValueError:
                log.error(f"Invalid config override {override}, expected section.attribute=value")
                continue
            if config_id not in Config.running_config.data:
                log.error(f"Override for unknown config section {config_id}")
                continue
            section = Config.running_config.data[config_id]
            if not hasattr(section, attr):
                log.error(f"Override for unknown config attribute {path}")
                continue
            current_value = getattr(section, attr)
            if isinstance(current_value, list):
                new_value: Any = [v for v in value.split(",") if v]
            elif current_value is None:
                new_value = value
            else:
                new_value = convert(value, type(current_value))
            log.debug(f"Overriding config {path} with {new_value}")
            setattr(section, attr, new_value)

    @staticmethod
    def dict() -> Json:
        return {config_id: to_json(section) for config_id, section in Config.running_config.data.items()}

    @staticmethod
    def add_args(arg_parser: ArgumentParser) -> None:
        arg_parser.add_argument(
            "--config",
            help="Path to a YAML config file",
            dest="config_file",
            type=str,
            default=None,
        )
        arg_parser.add_argument(
            "--override",
            help="Override config attribute(s), e.g. gcp.pool_size=4",
            dest="config_override",
            type=str,
            default=[],
            nargs="+",
        )


# Note: the config is mutable.
def current_config() -> Config:
    # metaclass makes it possible to use the class as instance.
    # use this accessor here to get a typed instance of the config
    return Config  # type: ignore
