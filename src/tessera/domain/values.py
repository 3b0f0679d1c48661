"""Value objects shared by the loader, the resolver and the engine."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from .errors import UnsupportedResourceError


class Tag(str, enum.Enum):
    """Dependency tags; the first element of every dependency descriptor."""

    LOAD = "load"
    COMPONENT = "component"
    INSTANCE = "instance"
    PROXY = "proxy"
    START = "start"
    STORE = "store"
    GET = "get"
    SET = "set"
    DEL = "del"


# mapping keys accepted for a resource descriptor, with their aliases
_RESOURCE_KEYS = {
    "url": "url",
    "type": "type",
    "method": "method",
    "context": "context",
    "attrs": "attrs",
    "attr": "attrs",
    "params": "params",
    "headers": "headers",
    "init": "init",
    "import": "import_",
    "import_": "import_",
    "no_cache": "no_cache",
}


@dataclass(slots=True)
class ResourceDescriptor:  # pylint: disable=too-many-instance-attributes
    """Description of one resource to load.

    Attributes:
        url: Location of the resource (HTTP(S) URL, ``file://`` URL, local
            path, or dotted module name for modules).
        type: Explicit strategy hint (``html``, ``image``, ``css``, ``script``,
            ``module``, ``xml`` or ``data``); inferred from the URL suffix when
            absent.
        method: Data exchange method (``get``, ``post``, ``put``, ``delete``,
            ``jsonp`` or ``fetch``), always lowercase.
        context: Target scope for inserted nodes: ``"head"``, a surface node or
            an instance. Resolved to a node by the loader.
        attrs: Extra attributes for inserted nodes.
        params: Request parameters (query string for GET, JSON body otherwise).
        headers: Request headers.
        init: Raw request options for the ``fetch`` method.
        import_: Member(s) to extract from a loaded module.
        no_cache: Ask intermediaries to bypass their caches.
    """

    url: str
    type: str | None = None
    method: str | None = None
    context: Any = None
    attrs: dict[str, Any] = field(default_factory=dict)
    params: Any = None
    headers: dict[str, str] = field(default_factory=dict)
    init: dict[str, Any] = field(default_factory=dict)
    import_: str | list[str] | None = None
    no_cache: bool = False

    def __post_init__(self) -> None:
        if self.method:
            self.method = self.method.lower()
        if self.type:
            self.type = self.type.lower()

    @classmethod
    def coerce(cls, value: Any) -> ResourceDescriptor:
        """Build a fresh descriptor from a URL, a mapping or another descriptor.

        Raises:
            UnsupportedResourceError: If the value has no usable URL or unknown keys.
        """
        if isinstance(value, ResourceDescriptor):
            return replace(value)
        if isinstance(value, str):
            return cls(url=value)
        if isinstance(value, Mapping):
            kwargs: dict[str, Any] = {}
            for key, item in value.items():
                if key not in _RESOURCE_KEYS:
                    raise UnsupportedResourceError(value, f"unknown key {key!r}")
                kwargs[_RESOURCE_KEYS[key]] = item
            if not isinstance(kwargs.get("url"), str) or not kwargs["url"]:
                raise UnsupportedResourceError(value)
            for key in ("attrs", "headers", "init"):
                kwargs[key] = dict(kwargs.get(key) or {})
            return cls(**kwargs)
        raise UnsupportedResourceError(value)

    @property
    def suffix(self) -> str:
        """Lowercase file suffix of the URL, without query string or fragment."""
        last = self.url.split("/")[-1]
        return last.split("?")[0].split("#")[0].rsplit(".", 1)[-1].lower() if "." in last else ""

    @property
    def filename(self) -> str:
        """Filename of the URL without query string and without a ``.min`` infix."""
        return self.url.split("/")[-1].split("?")[0].split("#")[0].replace(".min.", ".")


@dataclass(frozen=True)
class LoadFailure:
    """Positional marker replacing a failed resource in a load result.

    Attributes:
        error: The exception describing the failure.
        resource: The offending resource descriptor (or the raw value if it
            could not be interpreted).
        data: Raw failure data (HTTP response, OS error, ``"timeout"``, ...).
        call: The load call the resource belonged to, as ``["load", *resources]``.
    """

    error: BaseException
    resource: Any
    data: Any
    call: list[Any]
