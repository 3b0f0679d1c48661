"""Dependency resolver interface."""

from __future__ import annotations

import abc
from collections.abc import Callable
from typing import Any

from tessera.domain.values import Tag

DependencyHandler = Callable[..., Any]


class AbstractResolver(abc.ABC):
    """Contract for resolving dependency descriptors inside configuration data."""

    @abc.abstractmethod
    def register_handler(self, tag: Tag | str, handler: DependencyHandler) -> None:
        """Route descriptors carrying `tag` to `handler`.

        Handlers receive the descriptor's resolved arguments positionally and
        may be plain or coroutine functions.
        """

    @abc.abstractmethod
    async def resolve_dependency(self, descriptor: list[Any], instance: Any = None) -> Any:
        """Resolve a single dependency descriptor.

        Args:
            descriptor: ``[tag, *args]``; arguments may themselves be descriptors.
            instance: The instance the descriptor is resolved for, if any.

        Returns:
            The value produced by the tag's handler.

        Raises:
            NoHandlerForDependency: If no handler is registered for the tag.
        """

    @abc.abstractmethod
    async def resolve(self, value: Any, instance: Any = None) -> Any:
        """Resolve every dependency descriptor inside `value`.

        Returns:
            A fresh structure; `value` is left unchanged.

        Raises:
            ResolutionError: If any descriptor failed, after every sibling settled.
        """
