import base64
import json
from datetime import datetime, timezone
from typing import TypeVar, Any, Type, Optional, Union, List, Callable, Iterable, Dict, Mapping, Sequence

import attrs
import cattrs
from cattrs import override
from cattrs.gen import make_dict_unstructure_fn

from providerlib.logger import log

# mypy does not support recursive type definitions
# See discussion here: https://github.com/python/typing/issues/182
Json = Dict[str, Any]
JsonElement = Union[str, int, float, bool, None, Mapping[str, Any], Sequence[Any]]

AnyT = TypeVar("AnyT")

__converter = cattrs.Converter()


def __unstructure_fn(cls: type) -> Callable[[Any], Json]:
    # string annotations (e.g. Optional["Foo"]) need to be resolved, otherwise nested objects stay as is
    attrs.resolve_types(cls)
    # private attributes are never serialized
    omit = {a.name: override(omit=True) for a in attrs.fields(cls) if a.name.startswith("_")}
    return make_dict_unstructure_fn(cls, __converter, **omit)


__converter.register_unstructure_hook_factory(attrs.has, __unstructure_fn)


def parse_datetime(ts: Union[str, datetime]) -> datetime:
    if isinstance(ts, datetime):
        return ts
    if ts.endswith("Z"):
        ts = ts[:-1] + "+00:00"
    return datetime.fromisoformat(ts)


def datetime_str(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def register_json(
    cls: Type[AnyT],
    to_json_fn: Optional[Callable[[AnyT], JsonElement]] = None,
    from_json_fn: Optional[Callable[[Any], AnyT]] = None,
) -> None:
    """
    Register a json marshaller/unmarshaller for the given class.
    """
    if from_json_fn is not None:
        __converter.register_structure_hook(cls, lambda obj, _: from_json_fn(obj))  # type: ignore
    if to_json_fn is not None:
        __converter.register_unstructure_hook(cls, to_json_fn)


register_json(datetime, datetime_str, parse_datetime)
register_json(
    bytes,
    lambda b: base64.b64encode(b).decode("ascii"),
    lambda s: s if isinstance(s, bytes) else base64.b64decode(s),
)


def to_json_str(
    node: Any,
    strip_attr: Union[None, str, Iterable[str]] = None,
    strip_nulls: bool = False,
    indent: Optional[int] = None,
) -> str:
    return json.dumps(to_json(node, strip_attr, strip_nulls), indent=indent)


def to_json(node: Any, strip_attr: Union[None, str, Iterable[str]] = None, strip_nulls: bool = False) -> Json:
    """
    Use this method, if the given node is known as complex object,
    so the result will be a json object.
    """

    def walk_js_object(js: Json, filter_fn: Callable[[str, Any], bool]) -> Json:
        result: Json = {}
        for k, v in js.items():
            if not filter_fn(k, v):
                continue
            if isinstance(v, dict):
                v = walk_js_object(v, filter_fn)
            elif isinstance(v, (list, tuple)):
                v = [walk_js_object(e, filter_fn) if isinstance(e, dict) else e for e in v]
            result[k] = v
        return result

    unstructured: Json = __converter.unstructure(node)
    if strip_attr:
        remove_keys = {strip_attr} if isinstance(strip_attr, str) else set(strip_attr)
        unstructured = walk_js_object(unstructured, lambda k, v: k not in remove_keys)
    if strip_nulls:
        unstructured = walk_js_object(unstructured, lambda k, v: v is not None)
    return unstructured


def from_json(js: JsonElement, clazz: Type[AnyT]) -> AnyT:
    """
    Loads a json object into a python object.
    :param js: the json object to load.
    :param clazz: the type of the python object.
    :return: the loaded python object.
    """
    try:
        return __converter.structure(js, clazz)
    except Exception as e:
        log.debug(f"Can not deserialize json into class {clazz.__name__}: {js}. Error: {e}")
        raise


def value_in_path(element: JsonElement, path_or_name: Union[List[str], str]) -> Optional[Any]:
    """
    Access a value in a json object by a defined path.
    {"a": {"b": {"c": 1}}} -> value_in_path({"a": {"b": {"c": 1}}}, ["a", "b", "c"]) -> 1
    The path can be defined as a list of strings or as a string with dots as separator.
    """
    path = path_or_name if isinstance(path_or_name, list) else path_or_name.split(".")
    current: Any = element
    for name in path:
        if not isinstance(current, dict) or name not in current:
            return None
        current = current[name]
    return current


def set_value_in_path(element: JsonElement, path_or_name: Union[List[str], str], js: Optional[Json] = None) -> Json:
    path = path_or_name if isinstance(path_or_name, list) else path_or_name.split(".")
    js = js if js is not None else {}
    current = js
    for name in path[:-1]:
        value = current.get(name)
        if not isinstance(value, dict):
            value = {}
            current[name] = value
        current = value
    current[path[-1]] = element
    return js
