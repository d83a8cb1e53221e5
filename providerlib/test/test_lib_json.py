from datetime import datetime, timezone
from typing import ClassVar, Optional

from attrs import define

from providerlib.json import from_json, set_value_in_path, to_json, to_json_str, value_in_path


@define
class Foo:
    static: ClassVar[str] = "static"
    a: str
    b: int
    c: Optional[str] = None
    inner: Optional["Foo"] = None
    _private: str = "private"


def test_complex() -> None:
    foo = Foo("foo", 42, "bar")
    json = to_json(foo)
    assert json == {"a": "foo", "b": 42, "c": "bar", "inner": None}
    again = from_json(json, Foo)
    assert isinstance(again, Foo)
    assert again == foo
    # strip attrs based on string or list of strings
    assert to_json(foo, strip_attr="a") == {"b": 42, "c": "bar", "inner": None}
    assert to_json(foo, strip_attr=["a", "b", "c"]) == {"inner": None}
    assert to_json(foo, strip_nulls=True) == {"a": "foo", "b": 42, "c": "bar"}
    # nested objects are stripped as well
    nested = Foo("outer", 1, inner=Foo("inner", 2))
    assert to_json(nested, strip_attr="b", strip_nulls=True) == {"a": "outer", "inner": {"a": "inner"}}
    assert to_json_str(Foo("x", 1), strip_nulls=True) == '{"a": "x", "b": 1}'


def test_datetime() -> None:
    @define
    class Event:
        at: datetime

    event = Event(datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc))
    assert to_json(event) == {"at": "2024-01-02T03:04:05Z"}
    assert from_json({"at": "2024-01-02T03:04:05Z"}, Event) == event


def test_value_in_path() -> None:
    js = {"a": {"b": {"c": 1}}, "list": [1, 2]}
    assert value_in_path(js, ["a", "b", "c"]) == 1
    assert value_in_path(js, "a.b.c") == 1
    assert value_in_path(js, "a.b") == {"c": 1}
    assert value_in_path(js, "a.x") is None
    assert value_in_path(js, "list.0") is None
    assert value_in_path(None, "a") is None


def test_set_value_in_path() -> None:
    assert set_value_in_path(1, "a.b.c") == {"a": {"b": {"c": 1}}}
    existing = {"a": {"x": 2}}
    assert set_value_in_path(1, ["a", "b"], existing) == {"a": {"x": 2, "b": 1}}
    assert set_value_in_path(3, "a.x", existing) == {"a": {"x": 3, "b": 1}}
