from typing import Iterator

from pyghmi.ipmi.command import Command
from pytest import fixture

from provider_plugin_ipmi import connection
from fake_session import FakeCommand


@fixture(autouse=True)
def fake_session() -> Iterator[None]:
    FakeCommand.instances.clear()
    # replace the pyghmi session factory for tests
    connection._command_function = FakeCommand
    yield None
    connection._command_function = Command
