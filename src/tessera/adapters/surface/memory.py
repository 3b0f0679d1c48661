"""In-memory rendering surface.

A plain node tree with a document root holding ``head`` and ``body``. It is
used in tests and by applications that run headless (e.g. server-side data
processing built from components).
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

from tessera.interfaces.surface import SHADOW_CLOSED, SHADOW_OPEN, Node, Surface

SHADOW_TAG = "#shadow-root"


class MemoryNode(Node):
    """A node of the in-memory surface."""

    __slots__ = ("tag", "attrs", "children", "parent", "shadow", "host", "mode", "text")

    def __init__(self, tag: str, attrs: dict[str, Any] | None = None) -> None:
        self.tag = tag
        self.attrs: dict[str, Any] = dict(attrs or {})
        self.children: list[MemoryNode] = []
        self.parent: MemoryNode | None = None
        self.shadow: MemoryNode | None = None
        self.host: MemoryNode | None = None
        self.mode: str | None = None
        self.text = ""

    def __repr__(self) -> str:
        attrs = "".join(f" {key}={value!r}" for key, value in self.attrs.items())
        return f"<{self.tag}{attrs}>"

    @property
    def id(self) -> Any:
        """The ``id`` attribute, or None."""
        return self.attrs.get("id")

    def iter_descendants(self) -> Iterator[MemoryNode]:
        """Yield every descendant in document order, without entering scopes."""
        for child in self.children:
            yield child
            yield from child.iter_descendants()


class MemorySurface(Surface):
    """Surface backed by `MemoryNode` trees."""

    def __init__(self) -> None:
        self.document = MemoryNode("#document")
        self._head = MemoryNode("head")
        self._body = MemoryNode("body")
        self.append_child(self.document, self._head)
        self.append_child(self.document, self._body)
        self.definitions: dict[str, Callable[..., Any]] = {}

    @property
    def head(self) -> MemoryNode:
        return self._head

    @property
    def body(self) -> MemoryNode:
        return self._body

    def create_element(self, tag: str, **attrs: Any) -> MemoryNode:
        return MemoryNode(tag, attrs)

    def attach_shadow(self, host: Node, mode: str = SHADOW_CLOSED) -> MemoryNode:
        if mode not in (SHADOW_OPEN, SHADOW_CLOSED):
            raise ValueError(f"Invalid shadow mode: {mode!r}")
        host = _node(host)
        scope = MemoryNode(SHADOW_TAG)
        scope.mode = mode
        scope.host = host
        host.shadow = scope
        return scope

    def append_child(self, parent: Node, child: Node) -> None:
        parent, child = _node(parent), _node(child)
        self.remove(child)
        parent.children.append(child)
        child.parent = parent

    def remove(self, node: Node) -> None:
        node = _node(node)
        if node.parent is not None:
            node.parent.children.remove(node)
            node.parent = None

    def replace(self, old: Node, new: Node) -> None:
        old, new = _node(old), _node(new)
        parent = old.parent
        if parent is None:
            return
        self.remove(new)
        position = parent.children.index(old)
        parent.children[position] = new
        new.parent = parent
        old.parent = None

    def clear(self, node: Node) -> None:
        node = _node(node)
        for child in node.children:
            child.parent = None
        node.children.clear()

    def parent_of(self, node: Node) -> MemoryNode | None:
        return _node(node).parent

    def find(self, scope: Node, tag: str | None = None, **attrs: Any) -> MemoryNode | None:
        for node in _node(scope).iter_descendants():
            if tag is not None and node.tag != tag:
                continue
            if all(node.attrs.get(key) == value for key, value in attrs.items()):
                return node
        return None

    def is_attached(self, node: Node) -> bool:
        current: MemoryNode | None = _node(node)
        while current is not None:
            if current is self.document:
                return True
            current = current.parent if current.parent is not None else current.host
        return False

    def define_element(self, name: str, factory: Callable[..., Any]) -> None:
        self.definitions.setdefault(name, factory)

    def is_defined(self, name: str) -> bool:
        return name in self.definitions


def _node(node: Node) -> MemoryNode:
    if not isinstance(node, MemoryNode):
        raise TypeError(f"Expected a MemoryNode, got {type(node).__name__}")
    return node
