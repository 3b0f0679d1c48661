"""Rendering surface interface.

The runtime never renders anything itself. Instances receive a root node, an
optional encapsulated scope and a content node allocated on a `Surface`, and
the loader inserts stylesheet links and script nodes into it.
"""

from __future__ import annotations

import abc
from collections.abc import Callable
from typing import Any

from tessera.domain.data import OpaqueHandle

SHADOW_OPEN = "open"
SHADOW_CLOSED = "closed"


class Node(OpaqueHandle):  # pylint: disable=too-few-public-methods
    """Handle to a node of a rendering surface.

    Nodes are opaque to configuration walks: they are neither cloned nor
    searched for dependencies.
    """

    __slots__ = ()


class Surface(abc.ABC):
    """Contract for the rendering surface instances are attached to."""

    # --- Document ---

    @property
    @abc.abstractmethod
    def head(self) -> Node:
        """Node receiving global resources (stylesheets, scripts)."""

    @property
    @abc.abstractmethod
    def body(self) -> Node:
        """Node holding the visible tree."""

    # --- Node creation ---

    @abc.abstractmethod
    def create_element(self, tag: str, **attrs: Any) -> Node:
        """Create a detached element.

        Args:
            tag: Element tag name.
            **attrs: Element attributes (e.g. ``id``, ``href``).

        Returns:
            The new node.
        """

    @abc.abstractmethod
    def attach_shadow(self, host: Node, mode: str = SHADOW_CLOSED) -> Node:
        """Attach an encapsulated scope to `host` and return it.

        Nodes inside the scope are not found by `find` calls made from outside
        the scope.

        Raises:
            ValueError: If `mode` is neither ``"open"`` nor ``"closed"``.
        """

    # --- Tree mutation ---

    @abc.abstractmethod
    def append_child(self, parent: Node, child: Node) -> None:
        """Append `child` to `parent`, detaching it from its current parent first."""

    @abc.abstractmethod
    def remove(self, node: Node) -> None:
        """Detach `node` from its parent. Detached nodes are left unchanged."""

    @abc.abstractmethod
    def replace(self, old: Node, new: Node) -> None:
        """Put `new` at the position of `old` and detach `old`."""

    @abc.abstractmethod
    def clear(self, node: Node) -> None:
        """Detach every child of `node`."""

    # --- Queries ---

    @abc.abstractmethod
    def parent_of(self, node: Node) -> Node | None:
        """Return the parent of `node` (a scope for nodes directly inside one)."""

    @abc.abstractmethod
    def find(self, scope: Node, tag: str | None = None, **attrs: Any) -> Node | None:
        """Find the first descendant of `scope` matching a tag and attributes.

        Args:
            scope: Node whose descendants are searched (depth first, in order).
            tag: Required tag name, or None for any tag.
            **attrs: Required attribute values.

        Returns:
            The first matching node, or None.
        """

    @abc.abstractmethod
    def is_attached(self, node: Node) -> bool:
        """Return True if `node` is part of the document tree (through scopes too)."""

    # --- Declarative bindings ---

    @abc.abstractmethod
    def define_element(self, name: str, factory: Callable[..., Any]) -> None:
        """Publish a declarative element binding.

        Markup using the element `name` is turned into an instance by calling
        `factory`. Publishing a name twice keeps the first binding.
        """

    @abc.abstractmethod
    def is_defined(self, name: str) -> bool:
        """Return True if an element binding named `name` has been published."""
