from __future__ import annotations

from typing import Optional, List, Dict, Any, Set, Tuple

from attr import define, evolve
from google.auth.credentials import Credentials
from googleapiclient import discovery

from provider_plugin_gcp.utils import MemoryCache
from providerlib.json import value_in_path, Json

InternalZoneProp = "_zone"
RegionProp = "region"

# Store the discovery function as separate variable.
# This is used in tests to change the builder function.
_discovery_function = discovery.build


@define(eq=False, slots=False)
class GcpApiSpec:
    service: str
    version: str
    accessors: List[str]
    action: str
    request_parameter: Dict[str, Any]
    request_parameter_in: Set[str]
    response_path: Optional[str] = None
    response_regional_sub_path: Optional[str] = None
    get_identifier: Optional[str] = None
    required_iam_permissions: Optional[List[str]] = None
    expected_errors: Optional[Set[str]] = None

    def for_get(self, identifier: str = "{resource}") -> GcpApiSpec:
        params = {k: v for k, v in self.request_parameter.items() if k not in ("parent", "filter", "query")}
        params[self._get_identifier] = identifier
        return evolve(self, action="get", request_parameter=params, response_path=None, required_iam_permissions=None)

    @property
    def _get_identifier(self) -> str:
        return self.get_identifier or "name"

    @property
    def next_action(self) -> str:
        return self.action + "_next"

    @property
    def is_zone_specific(self) -> bool:
        return self.response_regional_sub_path is not None

    @property
    def is_project_level(self) -> bool:
        # api spec is on project level, if no other param than project is required
        return not (self.request_parameter_in - {"project"})

    @property
    def fqn(self) -> str:
        return f"{self.service}.{self.version}.{'.'.join(self.accessors)}.{self.action}"

    @property
    def iam_permissions(self) -> List[str]:
        # See https://cloud.google.com/iam/docs/permissions-reference for permission names
        # if permission name is defined, use it
        if self.required_iam_permissions is not None:
            return self.required_iam_permissions
        # derive the permission name from the api spec
        action = "list" if self.action in ("aggregatedList", "search") else self.action
        return [self.service + "." + ".".join(self.accessors) + "." + action]


class GcpClient:
    def __init__(
        self,
        credentials: Optional[Credentials],
        *,
        project_id: Optional[str] = None,
        region: Optional[str] = None,
    ) -> None:
        self.credentials = credentials
        self.project_id = project_id
        self.region = region

    def for_project(self, project_id: str) -> GcpClient:
        return GcpClient(self.credentials, project_id=project_id, region=self.region)

    def _executor(self, api_spec: GcpApiSpec) -> Any:
        client = _discovery_function(
            api_spec.service, api_spec.version, credentials=self.credentials, cache=MemoryCache()
        )
        executor = client
        for accessor in api_spec.accessors:
            executor = getattr(executor, accessor)()
        return executor

    def _params(self, api_spec: GcpApiSpec, **kwargs: Any) -> Dict[str, Any]:
        params_map = {**{"project": self.project_id, "region": self.region}, **kwargs}
        # non string parameters (e.g. a request body) are passed as is
        return {k: v.format_map(params_map) if isinstance(v, str) else v for k, v in api_spec.request_parameter.items()}

    def get(self, api_spec: GcpApiSpec, **kwargs: Any) -> Json:
        executor = self._executor(api_spec)
        request = getattr(executor, api_spec.action)(**self._params(api_spec, **kwargs))
        result: Json = request.execute()
        if api_spec.response_path is not None:
            return value_in_path(result, api_spec.response_path) or {}
        return result

    def list(self, api_spec: GcpApiSpec, **kwargs: Any) -> List[Json]:
        executor = self._executor(api_spec)
        params = self._params(api_spec, **kwargs)
        result: List[Json] = []

        def next_responses(request: Any) -> None:
            response = request.execute()
            page = value_in_path(response, api_spec.response_path) if api_spec.response_path else response
            if (sub_path := api_spec.response_regional_sub_path) is not None and isinstance(page, dict):
                for zonal_marker, zonal_response in page.items():
                    zone_prop, zonal_name = self.__extract_zonal_prop(zonal_marker)
                    for item in value_in_path(zonal_response, sub_path) or []:
                        # store the zone as part of the item
                        item[zone_prop] = zonal_name
                        result.append(item)
            elif isinstance(page, list):
                result.extend(page)
            elif page is None:
                pass
            else:
                raise ValueError(f"Unexpected response type: {type(page)}")

            if hasattr(executor, api_spec.next_action) and (
                nxt_req := getattr(executor, api_spec.next_action)(previous_request=request, previous_response=response)
            ):
                return next_responses(nxt_req)

        next_responses(getattr(executor, api_spec.action)(**params))
        return result

    @staticmethod
    def __extract_zonal_prop(name: str) -> Tuple[str, str]:
        if name == "global":
            return RegionProp, name
        if "/" not in name:
            raise ValueError(f"Unexpected zonal name: {name}")
        zonal_kind, zonal_name = name.split("/", maxsplit=1)
        if zonal_kind == "regions":
            return RegionProp, zonal_name
        elif zonal_kind == "zones":
            return InternalZoneProp, zonal_name
        else:
            raise ValueError(f"Unexpected zonal kind: {zonal_kind}")
