from __future__ import annotations

import json
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from threading import Lock
from types import TracebackType
from typing import Any, Callable, ClassVar, Dict, List, Optional, Set, Type, TypeVar, Union

from attr import define, field
from googleapiclient.errors import HttpError

from provider_plugin_gcp.config import GcpConfig
from provider_plugin_gcp.gcp_client import GcpApiSpec, GcpClient
from provider_plugin_gcp.utils import parse_resource_name
from providerlib.json import Json, from_json as from_js, value_in_path

log = logging.getLogger("provider.plugins.gcp")

T = TypeVar("T")

# A mapping entry is either a dotted path into the api response or a function of the response.
Mapper = Union[str, Callable[[Json], Any]]


def bend(mapping: Dict[str, Mapper], source: Json) -> Json:
    result: Json = {}
    for name, mapper in mapping.items():
        value = mapper(source) if callable(mapper) else value_in_path(source, mapper)
        if value is not None:
            result[name] = value
    return result


def parse_json(json: Json, clazz: Type[T], mapping: Optional[Dict[str, Mapper]] = None) -> Optional[T]:
    """
    Use this method to parse json into a class. If the json can not be parsed, the error is logged
    and None is returned.
    :param json: the json to parse.
    :param clazz: the class to parse into.
    :param mapping: the optional mapping to apply before parsing.
    :return: The parsed object or None.
    """
    try:
        mapped = bend(mapping, json) if mapping is not None else json
        return from_js(mapped, clazz)
    except Exception as e:
        log.warning(f"Failed to parse json into {clazz.__name__}: {e}. Source: {json}")
        return None


def last_segment(path: str) -> Callable[[Json], Optional[str]]:
    def fn(js: Json) -> Optional[str]:
        value = value_in_path(js, path)
        return parse_resource_name(value) if isinstance(value, str) else None

    return fn


class ResourceBuilder:
    """
    Shared state of one collect run: the api client, the configuration and the worker pool.
    Every resource kind is listed at most once per project, further requests are served from memory.
    """

    def __init__(
        self,
        client: GcpClient,
        config: GcpConfig,
        executor: ThreadPoolExecutor,
        project_id: Optional[str] = None,
    ) -> None:
        self.client = client if project_id is None else client.for_project(project_id)
        self.config = config
        self.executor = executor
        self.project_id = project_id
        self._resources: Dict[str, List[Any]] = {}
        self._resources_lock = Lock()

    def submit_work(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> Future[T]:
        """
        Use this method for work that can be done in parallel.
        Example: listing keyrings of all kms locations.
        """
        return self.executor.submit(fn, *args, **kwargs)

    def fan_out(self, items: List[Any], fn: Callable[[Any], List[T]]) -> List[T]:
        """
        Calls fn for every item in parallel.
        Results are flattened in the order of items. The first failing call raises.
        """
        futures = [self.submit_work(fn, item) for item in items]
        result: List[T] = []
        for future in futures:
            result.extend(future.result())
        return result

    def for_project(self, project_id: str) -> ResourceBuilder:
        return ResourceBuilder(self.client, self.config, self.executor, project_id)

    def resources_of(self, clazz: Type[GcpResourceType], **kwargs: Any) -> List[GcpResourceType]:
        key = clazz.kind + "".join(f":{k}={v}" for k, v in sorted(kwargs.items()))
        with self._resources_lock:
            if key in self._resources:
                return self._resources[key]
        resources = clazz.collect_resources(self, **kwargs)
        with self._resources_lock:
            return self._resources.setdefault(key, resources)


@define(eq=False, slots=False)
class GcpResource:
    kind: ClassVar[str] = "gcp_resource"
    api_spec: ClassVar[Optional[GcpApiSpec]] = None
    mapping: ClassVar[Dict[str, Mapper]] = {}

    id: str
    name: Optional[str] = None
    labels: Dict[str, str] = field(factory=dict)
    ctime: Optional[datetime] = None
    project_id: Optional[str] = None

    @property
    def resource_raw_name(self) -> str:
        """
        Extracts the last segment of the GCP resource ID.
        """
        return self.id.rsplit("/", maxsplit=1)[-1]

    def adjust_from_api(self, builder: ResourceBuilder, source: Json) -> GcpResource:
        """
        Hook method to adjust the resource after it has been parsed.
        Default: remember the project the resource belongs to.
        """
        if self.project_id is None:
            self.project_id = builder.project_id
        return self

    @classmethod
    def collect_resources(cls: Type[GcpResourceType], builder: ResourceBuilder, **kwargs: Any) -> List[GcpResourceType]:
        # Default behavior: in case the class has an ApiSpec, call the api and call collect.
        if spec := cls.api_spec:
            expected_errors = GcpExpectedErrorCodes | (spec.expected_errors or set())
            extra_info = f" in {builder.project_id} kind {cls.kind}"
            with GcpErrorHandler(spec.action, spec.service, expected_errors, extra_info):
                items = builder.client.list(spec, **kwargs)
                resources = cls.collect(items, builder)
                log.debug(f"[GCP:{builder.project_id}] finished collecting: {cls.kind} ({len(resources)})")
                return resources
        return []

    @classmethod
    def collect(cls: Type[GcpResourceType], raw: List[Json], builder: ResourceBuilder) -> List[GcpResourceType]:
        result: List[GcpResourceType] = []
        for js in raw:
            if instance := cls.from_api(js):
                result.append(instance.adjust_from_api(builder, js))  # type: ignore
        return result

    @classmethod
    def from_json(cls: Type[GcpResourceType], json: Json) -> GcpResourceType:
        return from_js(json, cls)

    @classmethod
    def from_api(cls: Type[GcpResourceType], json: Json) -> Optional[GcpResourceType]:
        return parse_json(json, cls, cls.mapping)

    @classmethod
    def called_collect_apis(cls) -> List[GcpApiSpec]:
        # The default implementation will return the defined api_spec if defined, otherwise an empty list.
        # In case your resource needs more than this api call, please override this method and return the proper list.
        if spec := cls.api_spec:
            return [spec]
        else:
            return []


GcpResourceType = TypeVar("GcpResourceType", bound=GcpResource)

GcpExpectedErrorCodes = {
    "PERMISSION_DENIED:usageLimits:accessNotConfigured",  # api not enabled in the project - no resources to expect
    "PERMISSION_DENIED:googleapis.com:SERVICE_DISABLED",
}


def error_codes(error: HttpError) -> Set[str]:
    """
    Error codes of the form status:domain:reason from the body of an HttpError.
    """
    try:
        content: Json = json.loads(error.content.decode())
    except Exception as ex:
        return {f"ParseError:unknown:{ex}"}
    status = value_in_path(content, ["error", "status"])
    codes = {
        f'{status}:{err.get("domain", "none")}:{err.get("reason", "none")}'
        for err in (value_in_path(content, ["error", "errors"]) or [])
    }
    for detail in value_in_path(content, ["error", "details"]) or []:
        if isinstance(detail, dict) and "reason" in detail:
            codes.add(f'{status}:{detail.get("domain", "none")}:{detail["reason"]}')
    return codes


class GcpErrorHandler:
    """
    Suppresses the expected errors of a listing call. Every other error is logged and propagated.
    """

    def __init__(self, action: str, service: str, expected_errors: Set[str], extra_info: str = "") -> None:
        self.action = action
        self.service = service
        self.expected_errors = expected_errors
        self.extra_info = extra_info

    def __enter__(self) -> "GcpErrorHandler":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_value: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> Optional[bool]:
        if exc_type is None or not isinstance(exc_value, HttpError):
            return None

        if exc_value.resp.status == 404 and "HttpError:none:none" in self.expected_errors:
            return True
        errors = error_codes(exc_value)
        error_summary = " Error Codes: " + (", ".join(sorted(errors))) if errors else ""
        if errors and errors.issubset(self.expected_errors):
            log.debug(f"Expected error while collecting{self.extra_info}: {exc_value}{error_summary}. Ignore.")
            return True

        log.debug(f"Error calling {self.service}.{self.action}{self.extra_info}: {exc_value}{error_summary}")
        return False
