"""
Inventory model shared by all providers.

A provider turns a connection `Config` into one or more `Asset`s. Each asset
carries the platform ids that identify it and the connection configs that
allow the host to connect to it again.
"""
from __future__ import annotations

import copy
from enum import Enum
from typing import Callable, ClassVar, Dict, List, Optional

import attrs
from attrs import define, field

CloneOption = Callable[["Config"], None]


class CredentialType(Enum):
    json = "json"
    password = "password"


@define
class Credential:
    type: CredentialType
    user: Optional[str] = None
    secret: bytes = b""

    @staticmethod
    def password(user: str, password: str) -> Credential:
        return Credential(type=CredentialType.password, user=user, secret=password.encode("utf-8"))

    @staticmethod
    def json_blob(blob: bytes) -> Credential:
        return Credential(type=CredentialType.json, secret=blob)


@define
class Discovery:
    targets: List[str] = field(factory=list)


@define
class Config:
    """Connection config of one asset."""

    type: str
    id: Optional[str] = None
    host: Optional[str] = None
    port: int = 0
    runtime: Optional[str] = None
    options: Dict[str, str] = field(factory=dict)
    credentials: List[Credential] = field(factory=list)
    discover: Optional[Discovery] = None
    parent_connection_id: Optional[str] = None

    def option(self, name: str, default: str = "") -> str:
        return self.options.get(name) or default

    def credential_of(self, kind: CredentialType) -> Optional[Credential]:
        for credential in self.credentials:
            if credential.type == kind:
                return credential
        return None

    def discovery_targets(self) -> List[str]:
        return list(self.discover.targets) if self.discover else []

    def clone(self, *opts: CloneOption) -> Config:
        cloned = copy.deepcopy(self)
        for opt in opts:
            opt(cloned)
        return cloned


def without_discovery() -> CloneOption:
    def apply(conf: Config) -> None:
        conf.discover = None

    return apply


def with_parent_connection_id(connection_id: Optional[str]) -> CloneOption:
    def apply(conf: Config) -> None:
        conf.parent_connection_id = connection_id

    return apply


@define
class Platform:
    name: str
    title: Optional[str] = None
    runtime: Optional[str] = None
    kind: Optional[str] = None
    family: List[str] = field(factory=list)
    technology_url_segments: List[str] = field(factory=list)


@define
class Asset:
    kind: ClassVar[str] = "asset"
    name: Optional[str] = None
    platform_ids: List[str] = field(factory=list)
    platform: Optional[Platform] = None
    labels: Dict[str, str] = field(factory=dict)
    connections: List[Config] = field(factory=list)
    related_assets: List[Asset] = field(factory=list)

    def all_assets(self) -> List[Asset]:
        """This asset followed by all related assets, depth first."""
        result: List[Asset] = []
        stack = [self]
        while stack:
            current = stack.pop()
            result.append(current)
            stack.extend(reversed(current.related_assets))
        return result


@define
class Inventory:
    assets: List[Asset] = field(factory=list)

    def add_assets(self, *assets: Asset) -> None:
        self.assets.extend(assets)

    def all_assets(self) -> List[Asset]:
        return [a for asset in self.assets for a in asset.all_assets()]


attrs.resolve_types(Credential)
attrs.resolve_types(Config)
attrs.resolve_types(Asset)
attrs.resolve_types(Inventory)
