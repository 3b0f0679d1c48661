"""Component definitions, indexes and component URL locators."""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from .data import OpaqueHandle, clone, is_dependency, merge
from .errors import InvalidComponentError
from .instance import Instance, ProxyInstance

# tessera.<name>[-<major>.<minor>.<patch>][.min].py
COMPONENT_URL = re.compile(
    r"(?:^|/)tessera\.([a-z][a-z0-9_]*)(?:-(\d+)\.(\d+)\.(\d+))?(?:\.min)?\.py$"
)
COMPONENT_NAME = re.compile(r"^[a-z][a-z0-9_]*$")


def make_index(name: str, version: tuple[int, ...] | None = None) -> str:
    """Return the registry key of a component.

    Example:
        >>> make_index("quiz", (4, 0, 1))
        'quiz-4-0-1'
        >>> make_index("quiz")
        'quiz'
    """
    if not version:
        return name
    return "-".join([name, *(str(part) for part in version)])


def parse_component_url(url: str) -> tuple[str, tuple[int, ...] | None] | None:
    """Extract the name and version encoded in a component URL.

    Returns:
        ``(name, version)`` for a component URL (version is None when the file
        name carries none), or None when `url` is not a component URL.
    """
    path = url.split("?")[0].split("#")[0]
    match = COMPONENT_URL.search(path)
    if match is None:
        return None
    name, *parts = match.groups()
    version = tuple(int(part) for part in parts) if parts[0] is not None else None
    return name, version


def index_of_url(url: str) -> str | None:
    """Return the component index a component URL would register under, if any."""
    parsed = parse_component_url(url)
    return make_index(*parsed) if parsed else None


def _coerce_version(value: Any) -> tuple[int, ...] | None:
    if value is None or value == "":
        return None
    if isinstance(value, str):
        value = value.split(".")
    try:
        return tuple(int(part) for part in value)
    except (TypeError, ValueError):
        return None


@dataclass(eq=False)
class ComponentDefinition(OpaqueHandle):  # pylint: disable=too-many-instance-attributes
    """A versioned component definition.

    Attributes:
        name: Unique component name (lowercase letters, digits, underscores).
        blueprint: The `Instance` subclass instances are created from.
        version: Semantic version as a tuple of ints, or None for "latest".
        config: Default instance configuration.
        ready: Optional one-time setup hook, called with the definition on
            first registration and discarded afterwards.
        engine_version: Engine version label (or URL) the component needs.
        url: Locator the definition was loaded from.
        index: Registry key, derived from name and version.
        instances: Number of instances created so far (canonical entry only).
        engine: The engine the definition is bound to once registered.
    """

    name: str
    blueprint: type[Instance]
    version: tuple[int, ...] | None = None
    config: Any = field(default_factory=dict)
    ready: Callable[..., Any] | None = None
    engine_version: str | None = None
    url: str | None = None
    index: str = field(init=False, default="")
    instances: int = 0
    engine: Any = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not COMPONENT_NAME.match(self.name):
            raise InvalidComponentError(str(self.name), "invalid component name")
        if not (isinstance(self.blueprint, type) and issubclass(self.blueprint, Instance)):
            raise InvalidComponentError(self.name, "blueprint must be an Instance subclass")
        self.version = _coerce_version(self.version)
        self.index = make_index(self.name, self.version)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ComponentDefinition:
        """Build a definition from its mapping form.

        Recognized keys: ``name``, ``blueprint``, ``version`` (tuple, list or
        dotted string), ``config``, ``ready``, ``engine`` and ``url``.

        Raises:
            InvalidComponentError: If the name or the blueprint is missing or invalid.
        """
        name = data.get("name")
        if not name:
            raise InvalidComponentError(str(data.get("index", "?")), "missing name")
        if data.get("blueprint") is None:
            raise InvalidComponentError(name, "missing blueprint")
        return cls(
            name=name,
            blueprint=data["blueprint"],
            version=data.get("version"),
            config=clone(data.get("config") or {}),
            ready=data.get("ready"),
            engine_version=data.get("engine"),
            url=data.get("url"),
        )

    def copy(self, config: Any = None) -> ComponentDefinition:
        """Return a copy of the definition, optionally with another default configuration."""
        return replace(self, config=clone(self.config if config is None else config))

    def _pre_merge(self, config: Any) -> Any:
        if is_dependency(config):
            return config
        return merge(config or {}, self.config)

    async def instance(self, config: Any = None) -> Instance:
        """Build an instance of this component with `config` over its defaults."""
        return await self.engine.instance(self, self._pre_merge(config))

    async def start(self, config: Any = None) -> Instance:
        """Build and start an instance of this component with `config` over its defaults."""
        return await self.engine.start(self, self._pre_merge(config))

    async def proxy(self, config: Any = None) -> ProxyInstance:
        """Return a lazy proxy of this component."""
        return await self.engine.proxy(self, self._pre_merge(config))
