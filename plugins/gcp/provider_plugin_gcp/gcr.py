"""Lists the images of a Google Container Registry repository via the docker registry v2 api."""
from __future__ import annotations

import logging
from typing import Any, List, Optional

import requests
from google.auth.credentials import Credentials
from google.auth.transport.requests import Request

from providerlib.inventory import Asset, Config
from providerlib.json import Json

log = logging.getLogger("provider.plugins.gcp")

ContainerRegistryConnectionType = "container-registry"


class GcrImages:
    def __init__(
        self, credentials: Optional[Credentials] = None, session: Optional[requests.Session] = None, timeout: int = 30
    ) -> None:
        self.credentials = credentials
        self.session = session
        self.timeout = timeout

    def _session(self) -> requests.Session:
        if self.session is None:
            session = requests.Session()
            if self.credentials is not None:
                if not self.credentials.valid:
                    self.credentials.refresh(Request())
                # gcr accepts an oauth2 access token as basic auth password
                session.auth = ("oauth2accesstoken", self.credentials.token)
            self.session = session
        return self.session

    def tags(self, repository: str) -> Json:
        host, _, path = repository.partition("/")
        response = self._session().get(f"https://{host}/v2/{path}/tags/list", timeout=self.timeout)
        response.raise_for_status()
        result: Json = response.json()
        return result

    def list_repository(self, repository: str, recursive: bool = False) -> List[Asset]:
        """
        One asset per manifest digest found in the repository.
        With recursive, all child repositories are walked depth first.
        """
        log.debug(f"Listing images of repository {repository}")
        listing = self.tags(repository)
        assets: List[Asset] = []
        manifests: Any = listing.get("manifest") or {}
        for digest in manifests:
            assets.append(self.image_asset(repository, digest))
        if recursive:
            for child in listing.get("child") or []:
                assets.extend(self.list_repository(f"{repository}/{child}", recursive=True))
        return assets

    @staticmethod
    def image_asset(repository: str, digest: str) -> Asset:
        image = f"{repository}@{digest}"
        return Asset(
            name=image,
            connections=[Config(type=ContainerRegistryConnectionType, host=image)],
        )
