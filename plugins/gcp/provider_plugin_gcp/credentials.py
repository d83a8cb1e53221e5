"""
Credentials used by a GCP connection.

A connection either carries an explicit service account (json blob) or uses
the ambient application default credentials of the environment. Both variants
derive fresh credentials on every call.
"""
import json
import logging
import os
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

import google.auth
from google.auth.credentials import Credentials
from google.oauth2 import service_account
from google_auth_httplib2 import AuthorizedHttp

from providerlib.errors import ConfigurationError

log = logging.getLogger("provider.plugins.gcp")

SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]

# env vars have precedence over the --credentials-path flag
CredentialEnvVars = [
    "GOOGLE_APPLICATION_CREDENTIALS",
    "GOOGLE_CREDENTIALS",
    "GOOGLE_CLOUD_KEYFILE_JSON",
    "GCLOUD_KEYFILE_JSON",
]


class CredentialProvider(ABC):
    @abstractmethod
    def credentials(self, *scopes: str) -> Credentials:
        pass

    def client(self, *scopes: str) -> AuthorizedHttp:
        """An http client that authorizes every request with credentials for the given scopes."""
        return AuthorizedHttp(self.credentials(*scopes))


class ServiceAccountCredentialProvider(CredentialProvider):
    def __init__(self, blob: bytes, subject: Optional[str] = None) -> None:
        self.blob = blob
        self.subject = subject

    def credentials(self, *scopes: str) -> Credentials:
        try:
            info = json.loads(self.blob)
        except ValueError as e:
            raise ConfigurationError(f"could not parse service account json: {e}") from e
        if info.get("type", "service_account") == "service_account":
            credentials = service_account.Credentials.from_service_account_info(info, scopes=list(scopes or SCOPES))
            if self.subject:
                credentials = credentials.with_subject(self.subject)
            return credentials
        if self.subject:
            raise ConfigurationError(f"impersonation requires a service account, got {info['type']} credentials")
        credentials, _ = google.auth.load_credentials_from_dict(info, scopes=list(scopes or SCOPES))
        return credentials


class AmbientCredentialProvider(CredentialProvider):
    def credentials(self, *scopes: str) -> Credentials:
        credentials, _ = google.auth.default(scopes=list(scopes or SCOPES))
        return credentials


def credential_paths(credentials_path: Optional[str] = None, env_vars: Sequence[str] = CredentialEnvVars) -> List[str]:
    paths = [value for name in env_vars if (value := os.environ.get(name))]
    if credentials_path:
        paths.append(credentials_path)
    return paths


def find_service_account(credentials_path: Optional[str] = None) -> Optional[bytes]:
    """
    Reads the first readable file of the credential env vars, followed by the credentials_path.
    """
    for path in credential_paths(credentials_path):
        try:
            with open(os.path.expanduser(path), "rb") as f:
                log.debug(f"Using service account from {path}")
                return f.read()
        except OSError as e:
            log.debug(f"Can not read credentials from {path}: {e}")
    return None
