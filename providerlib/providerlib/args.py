import argparse
import os
from typing import Any, Optional, Sequence, Tuple, Union, Callable, List

DEFAULT_ENV_ARGS_PREFIX = "PROVIDER_"


class Namespace(argparse.Namespace):
    def __getattr__(self, item: str) -> Any:
        return None


class _MachineHelpAction(argparse.Action):
    def __init__(self, option_strings: List[str], dest: str = argparse.SUPPRESS, help: Optional[str] = None) -> None:
        super().__init__(option_strings=option_strings, dest=dest, default=argparse.SUPPRESS, nargs=0, help=help)

    def __call__(self, parser: Any, namespace: Any, values: Any, option_string: Optional[str] = None) -> None:
        parser.print_machine_help()
        parser.exit()


class ArgumentParser(argparse.ArgumentParser):
    """argparse with defaults taken from the environment.

    `--some-flag` can be preset with `PROVIDER_SOME_FLAG`. Flags taking several
    values read either a space separated list or `PROVIDER_SOME_FLAG0`,
    `PROVIDER_SOME_FLAG1`, ...
    """

    # Result of the last parse_args() call.
    # Returns None for every attribute before parse_args() was called.
    args = Namespace()

    def __init__(
        self,
        *args: Any,
        env_args_prefix: str = DEFAULT_ENV_ARGS_PREFIX,
        add_machine_help: bool = True,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.env_args_prefix = env_args_prefix
        self.register("action", "machine_help", _MachineHelpAction)
        if add_machine_help:
            self.add_argument("--machine-help", action="machine_help", help="print machine readable help")

    def print_machine_help(self) -> None:
        for action in self._actions:
            if action.default == argparse.SUPPRESS:
                continue
            for option_string in action.option_strings:
                print(option_string)

    def env_name(self, action: argparse.Action) -> Optional[str]:
        for option_string in action.option_strings:
            if option_string.startswith("--"):
                return self.env_args_prefix + option_string[2:].replace("-", "_").upper()
        return None

    def parse_known_args(  # type: ignore
        self, args: Optional[Sequence[str]] = None, namespace: Optional[argparse.Namespace] = None
    ) -> Tuple[argparse.Namespace, List[str]]:
        for action in self._actions:
            env_name = self.env_name(action)
            if env_name is None or action.default == argparse.SUPPRESS:
                continue
            new_default: Any = None
            if action.nargs not in (0, None):
                if (value := os.environ.get(env_name)) is not None:
                    new_default = value.split(" ")
                else:
                    numbered = [os.environ.get(env_name + str(i)) for i in range(255)]
                    new_default = [v for v in numbered if v is not None] or None
            else:
                new_default = os.environ.get(env_name)

            if new_default is not None:
                type_goal = action.type if callable(action.type) else type(action.default)
                if isinstance(new_default, list):
                    action.default = [convert(n, type_goal) for n in new_default]
                else:
                    action.default = convert(new_default, type_goal)
        ret_args, ret_argv = super().parse_known_args(args=args, namespace=namespace)
        ArgumentParser.args = ret_args  # type: ignore
        return ret_args, ret_argv


def get_arg_parser(
    add_help: bool = True, description: str = "provider", env_args_prefix: str = DEFAULT_ENV_ARGS_PREFIX
) -> ArgumentParser:
    return ArgumentParser(description=description, add_help=add_help, env_args_prefix=env_args_prefix)


NoneType = type(None)


def convert(value: Any, type_goal: Union[type, Callable[[Any], Any]]) -> Any:
    if type_goal is NoneType:
        return value
    elif type_goal is bool:
        return str(value).lower() in ("true", "1", "yes")
    elif type_goal in (str, int, float):
        try:
            return type_goal(value)
        except ValueError:
            return value
    elif isinstance(type_goal, type):
        # don't know how to handle this type
        return value
    return type_goal(value)
