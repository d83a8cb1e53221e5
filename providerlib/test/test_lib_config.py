from pathlib import Path
from typing import ClassVar, Iterator, List

import pytest
from attrs import define, field

from providerlib.config import Config, current_config
from providerlib.errors import ConfigNotFoundError


@define
class SampleConfig:
    kind: ClassVar[str] = "sample"
    name: str = field(default="default", metadata={"description": "a name"})
    size: int = field(default=8, metadata={"description": "a size"})
    targets: List[str] = field(factory=list, metadata={"description": "some targets"})


@pytest.fixture
def config() -> Iterator[Config]:
    Config.reset()
    Config.add_config(SampleConfig)
    yield current_config()
    Config.reset()


def test_defaults(config: Config) -> None:
    with pytest.raises(ConfigNotFoundError):
        assert Config.sample
    Config.init_default_config()
    assert Config.sample == SampleConfig()
    assert Config.dict() == {"sample": {"name": "default", "size": 8, "targets": []}}


def test_load_file(config: Config, tmp_path: Path) -> None:
    file = tmp_path / "config.yaml"
    file.write_text("sample:\n  name: from-file\n  targets: [a, b]\nunknown:\n  x: 1\n")
    Config.load_file(str(file))
    assert Config.sample.name == "from-file"
    assert Config.sample.targets == ["a", "b"]
    assert Config.sample.size == 8


def test_load_file_not_a_mapping(config: Config, tmp_path: Path) -> None:
    file = tmp_path / "config.yaml"
    file.write_text("- a\n- b\n")
    with pytest.raises(ValueError):
        Config.load_file(str(file))


def test_override(config: Config) -> None:
    Config.init_default_config()
    Config.override_config(["sample.size=3", "sample.targets=x,y", "sample.name=n", "sample.missing=1", "broken"])
    assert Config.sample.size == 3
    assert Config.sample.targets == ["x", "y"]
    assert Config.sample.name == "n"


def test_config_requires_kind() -> None:
    @define
    class NoKind:
        a: int = 1

    with pytest.raises(RuntimeError):
        Config.add_config(NoKind)
