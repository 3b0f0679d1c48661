"""Dependency resolution inside nested configuration data.

The resolver routes every dependency descriptor (``[tag, *args]``) to the
handler registered for its tag, much like a message bus routes commands.
Handlers are injected by the engine, which keeps this module free of any
import of the builder or the registry.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import Any

from tessera.domain.data import IGNORE_KEY, Kind, classify, clone, is_dependency
from tessera.domain.errors import (
    NoHandlerForDependency,
    ResolutionError,
    ResourceLoadError,
    TesseraError,
)
from tessera.domain.instance import call_hook
from tessera.domain.values import ResourceDescriptor, Tag
from tessera.interfaces.resolver import AbstractResolver, DependencyHandler

logger = logging.getLogger(__name__)

CONFIG_TAGS = (Tag.INSTANCE, Tag.PROXY, Tag.START)
SETTINGS_TAGS = (Tag.STORE, Tag.GET, Tag.SET, Tag.DEL)


def _with_context(resource: Any, instance: Any) -> Any:
    if isinstance(resource, list):
        return [_with_context(item, instance) for item in resource]
    if isinstance(resource, str):
        return {"url": resource, "context": instance}
    if isinstance(resource, Mapping) and resource.get("context") is None:
        return {**resource, "context": instance}
    if isinstance(resource, ResourceDescriptor) and resource.context is None:
        resource.context = instance
    return resource


def attach_context(tag: Tag, args: list[Any], instance: Any) -> list[Any]:
    """Attach the invoking instance to a descriptor's resolved arguments.

    Resources to load inherit the instance's scope, configurations of
    ``instance``/``proxy``/``start`` and settings of ``store``/``get``/
    ``set``/``del`` receive it as ``parent``.
    """
    if instance is None:
        return args
    if tag is Tag.LOAD:
        return [_with_context(resource, instance) for resource in args]
    if tag in CONFIG_TAGS:
        if len(args) < 2 or args[1] is None:
            args = [*args[:1], {}, *args[2:]] if args else args
        if len(args) > 1 and isinstance(args[1], dict):
            args[1]["parent"] = instance
    elif tag in SETTINGS_TAGS:
        if not args or args[0] is None:
            args = [{}, *args[1:]]
        if isinstance(args[0], dict):
            args[0]["parent"] = instance
    return args


def failure_payload(exc: BaseException) -> Any:
    """Return the value left in place of a descriptor that failed with `exc`."""
    if isinstance(exc, ResolutionError):
        return exc.value
    if isinstance(exc, ResourceLoadError):
        return exc.results
    return exc


class DependencyResolver(AbstractResolver):
    """Resolves dependency descriptors by dispatching them to tag handlers.

    Args:
        handlers: A mapping of tags to their handlers. Handlers receive the
            resolved descriptor arguments positionally and may be plain or
            coroutine functions.
    """

    def __init__(self, handlers: Mapping[Tag | str, DependencyHandler] | None = None) -> None:
        self._handlers: dict[Tag, DependencyHandler] = {}
        for tag, handler in (handlers or {}).items():
            self.register_handler(tag, handler)

    def register_handler(self, tag: Tag | str, handler: DependencyHandler) -> None:
        self._handlers[Tag(tag)] = handler

    async def resolve_dependency(self, descriptor: list[Any], instance: Any = None) -> Any:
        descriptor = clone(descriptor)
        tag = Tag(descriptor.pop(0))
        if (handler := self._handlers.get(tag)) is None:
            logger.error("No handler found for dependency %s", tag.value)
            raise NoHandlerForDependency(tag.value)

        args = attach_context(tag, await self._resolve_arguments(descriptor, instance), instance)
        handler_name = self._get_handler_name(handler)
        logger.debug("Handling dependency %s with handler %s", tag.value, handler_name)
        try:
            return await call_hook(handler, *args)
        except TesseraError as exc:
            logger.debug("Dependency %s failed: %s", tag.value, exc)
            raise
        except Exception:  # pylint: disable=broad-except
            logger.exception(
                "Exception handling dependency %s with handler %s", tag.value, handler_name
            )
            raise

    async def resolve(self, value: Any, instance: Any = None) -> Any:
        resolved, errors = await self._walk(value, instance)
        if errors:
            raise ResolutionError(resolved, errors) from errors[0]
        return resolved

    async def _resolve_arguments(self, args: list[Any], instance: Any) -> list[Any]:
        outcomes = await asyncio.gather(
            *(
                self.resolve_dependency(arg, instance) if is_dependency(arg) else _settled(arg)
                for arg in args
            ),
            return_exceptions=True,
        )
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
        return list(outcomes)

    async def _walk(self, value: Any, instance: Any) -> tuple[Any, list[BaseException]]:
        match classify(value):
            case Kind.DESCRIPTOR:
                try:
                    return await self.resolve_dependency(value, instance), []
                except ResolutionError as exc:
                    return exc.value, list(exc.errors)
                except Exception as exc:  # pylint: disable=broad-except
                    return failure_payload(exc), [exc]
            case Kind.RECORD:
                keys = [key for key in value if key != IGNORE_KEY]
                walked = await asyncio.gather(*(self._walk(value[key], instance) for key in keys))
                resolved = dict(zip(keys, (item for item, _ in walked)))
                result = {
                    key: clone(item) if key == IGNORE_KEY else resolved[key]
                    for key, item in value.items()
                }
                return result, [error for _, errors in walked for error in errors]
            case Kind.ARRAY:
                walked = await asyncio.gather(*(self._walk(item, instance) for item in value))
                return [item for item, _ in walked], [e for _, errors in walked for e in errors]
            case _:
                return value, []

    @staticmethod
    def _get_handler_name(fn: Callable[..., Any]) -> str:
        if hasattr(fn, "__qualname__"):
            return fn.__qualname__
        return type(fn).__name__


async def _settled(value: Any) -> Any:
    return value
