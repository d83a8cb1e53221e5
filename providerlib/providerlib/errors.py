class ProviderError(Exception):
    pass


class ConfigurationError(ProviderError):
    """The connection configuration is incomplete or contradicts itself."""


class ProviderTypeMismatchError(ConfigurationError):
    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(f"provider type does not match: expected {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class AccessError(ProviderError):
    """The target does not exist or the credentials are not allowed to read it."""

    def __init__(self, what: str, identifier: str) -> None:
        super().__init__(f"could not find or have no access to {what} {identifier}")
        self.what = what
        self.identifier = identifier


class DiscoveryError(ProviderError):
    """Listing the objects behind a connected asset failed."""


class ConnectionNotFoundError(ProviderError):
    pass


class ConfigNotFoundError(AttributeError):
    pass
