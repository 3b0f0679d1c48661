"""Domain-layer error definitions."""

from __future__ import annotations

from typing import Any

# ============================================================================
#                           General runtime errors
# ============================================================================


class TesseraError(Exception):
    """Base class for all runtime errors."""


# ============================================================================
#                         Resource loading errors
# ============================================================================


class UnsupportedResourceError(TesseraError):
    """Raised when a value cannot be interpreted as a resource descriptor."""

    def __init__(self, value: Any, reason: str = "expected a URL or a descriptor with a url") -> None:
        super().__init__(f"Unsupported resource {value!r}: {reason}")
        self.value = value


class ResourceFailedError(TesseraError):
    """Raised by a load strategy when a single resource cannot be loaded.

    The raw failure data (an HTTP response, an OS error, ...) is kept in `data`.
    """

    def __init__(self, url: str, data: Any = None) -> None:
        super().__init__(f"loading of {url} failed")
        self.url = url
        self.data = data


class ResourceTimeoutError(TesseraError):
    """Stored in a load failure marker when a resource did not settle in time."""

    def __init__(self, url: str, timeout: float) -> None:
        super().__init__(f"loading of {url} timed out after {timeout}s")
        self.url = url
        self.timeout = timeout


class ResourceLoadError(TesseraError):
    """Raised when at least one resource of a load call failed.

    `results` holds the complete positional result of the call: successful
    values stay in place and failed resources are replaced by `LoadFailure`
    markers. A call with a single resource carries the bare marker.
    """

    def __init__(self, results: Any, failures: int = 1) -> None:
        super().__init__(f"loading of {failures} resource(s) failed")
        self.results = results
        self.failures = failures


# ============================================================================
#                           Resolution errors
# ============================================================================


class ResolutionError(TesseraError):
    """Raised when a dependency inside nested data failed to resolve.

    `value` is the resolved structure with every failure payload left at the
    position of the descriptor that produced it; `errors` lists the
    underlying exceptions in traversal order.
    """

    def __init__(self, value: Any, errors: list[BaseException]) -> None:
        super().__init__(f"{len(errors)} dependency(ies) failed to resolve")
        self.value = value
        self.errors = errors


class NoHandlerForDependency(LookupError, TesseraError):
    """Raised when no handler is registered for a dependency tag."""

    def __init__(self, tag: str) -> None:
        super().__init__(f"No handler found for dependency {tag!r}")
        self.tag = tag


# ============================================================================
#                          Registration errors
# ============================================================================


class RegistrationError(TesseraError):
    """Base class for component registration failures."""


class InvalidComponentError(RegistrationError):
    """Raised when a component definition is malformed."""

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"Invalid component {name}: {reason}")
        self.name = name
        self.reason = reason


class UnresolvableLocatorError(RegistrationError):
    """Raised when a component locator is neither a registered index nor a component URL."""

    def __init__(self, locator: str) -> None:
        super().__init__(f"Invalid component index or URL: {locator}")
        self.locator = locator


# ============================================================================
#                        Instance building errors
# ============================================================================


class InstanceBuildError(TesseraError):
    """Raised when an instance cannot be created from its configuration."""


class BaseConfigChainError(InstanceBuildError):
    """Raised when a chain of base configurations does not terminate."""

    def __init__(self, depth: int) -> None:
        super().__init__(f"Base configuration chain exceeds {depth} levels")
        self.depth = depth


# ============================================================================
#                             Datastore errors
# ============================================================================


class StoreConfigurationError(TesseraError):
    """Raised when datastore settings cannot be served by any configured factory."""
