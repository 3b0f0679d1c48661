"""Conversion of HTML markup into structured data.

Elements become mappings: ``tag`` (omitted for ``div``), one entry per
attribute (empty attributes become True) and ``inner`` holding the content
(a single child unwrapped, omitted when empty). A fragment that is a sequence
of ``<tessera-template>`` elements becomes a template set.
"""

from __future__ import annotations

import re
from html.parser import HTMLParser
from typing import Any

TEMPLATE_TAG = "tessera-template"
VOID_ELEMENTS = frozenset(
    {
        "area", "base", "br", "col", "embed", "hr", "img", "input",
        "link", "meta", "source", "track", "wbr",
    }
)  # fmt: skip

_WHITESPACE = re.compile(r"\s+")


class _Element:  # pylint: disable=too-few-public-methods
    __slots__ = ("tag", "attrs", "children")

    def __init__(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self.tag = tag
        self.attrs = attrs
        self.children: list[_Element | str] = []

    def text_content(self) -> str:
        return "".join(
            child if isinstance(child, str) else child.text_content()
            for child in self.children
        )


class _TreeBuilder(HTMLParser):
    """Builds a lenient element tree; unmatched end tags are ignored."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.fragment = _Element("#fragment", [])
        self._stack = [self.fragment]

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        element = _Element(tag, attrs)
        self._stack[-1].children.append(element)
        if tag not in VOID_ELEMENTS:
            self._stack.append(element)

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._stack[-1].children.append(_Element(tag, attrs))

    def handle_endtag(self, tag: str) -> None:
        for position in range(len(self._stack) - 1, 0, -1):
            if self._stack[position].tag == tag:
                del self._stack[position:]
                return

    def handle_data(self, data: str) -> None:
        children = self._stack[-1].children
        if children and isinstance(children[-1], str):
            children[-1] += data
        else:
            children.append(data)


def _element_to_data(element: _Element) -> dict[str, Any]:
    data: dict[str, Any] = {}
    if element.tag != "div":
        data["tag"] = element.tag
    for name, value in element.attrs:
        data[name] = True if value in (None, "") else value
    inner: list[Any] = []
    for child in element.children:
        if isinstance(child, _Element):
            inner.append(_element_to_data(child))
        elif child.strip():
            inner.append(_WHITESPACE.sub(" ", child))
    if len(inner) == 1:
        data["inner"] = inner[0]
    elif inner:
        data["inner"] = inner
    return data


def _template_set(templates: list[_Element]) -> dict[str, Any] | list[Any]:
    keyed = dict(templates[0].attrs).get("key") is not None
    result: dict[str, Any] | list[Any] = {} if keyed else []
    for position, template in enumerate(templates):
        data = _element_to_data(template)
        key = data.pop("key", None)
        data.pop("tag", None)
        value = data.get("inner") if not isinstance(data.get("inner"), list) else data
        if isinstance(result, dict):
            result[str(key) if key is not None else str(position)] = value
        else:
            result.append(value)
    return result


def html_to_data(markup: str) -> Any:
    """Convert HTML markup into structured data.

    Returns:
        The text itself when the markup has no elements, a template set for a
        sequence of ``<tessera-template>`` elements, the element mapping for a
        single root, or a list for several roots.

    Example:
        >>> html_to_data('<p class="x">Hello <b>World</b></p>')
        {'tag': 'p', 'class': 'x', 'inner': ['Hello ', {'tag': 'b', 'inner': 'World'}]}
    """
    builder = _TreeBuilder()
    builder.feed(markup)
    builder.close()
    fragment = builder.fragment
    if not any(isinstance(child, _Element) for child in fragment.children):
        return fragment.text_content()

    children: list[_Element | str] = [
        child if isinstance(child, _Element) else child.strip()
        for child in fragment.children
        if isinstance(child, _Element) or child.strip()
    ]
    first = children[0]
    if isinstance(first, _Element) and first.tag == TEMPLATE_TAG:
        return _template_set(
            [child for child in children if isinstance(child, _Element) and child.tag == TEMPLATE_TAG]
        )
    converted = [_element_to_data(child) if isinstance(child, _Element) else child for child in children]
    return converted[0] if len(converted) == 1 else converted
