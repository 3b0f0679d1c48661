"""Instance configuration layering."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from tessera.domain.data import clone, deep_value, is_dependency
from tessera.domain.errors import BaseConfigChainError, InstanceBuildError
from tessera.domain.values import Tag
from tessera.interfaces.resolver import AbstractResolver

logger = logging.getLogger(__name__)

BASE_KEY = "key"
RESERVED_KEYS = (BASE_KEY, "component")
MAX_BASE_DEPTH = 32


def _is_get(value: Any) -> bool:
    return is_dependency(value) and value[0] == Tag.GET.value


class ConfigPreparer:
    """Merges configuration layers for new instances.

    Args:
        resolver: Resolves descriptor-valued configurations, base
            configurations and ``get`` descriptors met along dot paths.
        max_depth: Maximum length of a base configuration chain.
    """

    def __init__(self, resolver: AbstractResolver, max_depth: int = MAX_BASE_DEPTH) -> None:
        self._resolver = resolver
        self._max_depth = max_depth

    async def integrate(self, priodata: Any, dataset: Any, as_defaults: bool = False) -> Any:
        """Merge priority data into a copy of a dataset.

        Keys of `priodata` may use dot notation. A ``get`` descriptor met on the
        way to a nested key is resolved (and written back) before the nested
        value is set, so ``{"texts.title": "Hi"}`` can refine a text set that
        the dataset still references as ``["get", ...]``.

        Returns:
            A fresh merged structure.
        """
        dataset = clone(dataset)
        if not isinstance(priodata, Mapping):
            return dataset
        if not isinstance(dataset, dict):
            return clone(dict(priodata))
        for key, value in priodata.items():
            key = str(key)
            parts = key.split(".")
            for depth in range(1, len(parts)):
                path = ".".join(parts[:depth])
                nested = deep_value(dataset, path)
                if _is_get(nested):
                    resolved = await self._resolver.resolve_dependency(nested)
                    deep_value(dataset, path, clone(resolved))
                elif nested is None:
                    break
            if not as_defaults or deep_value(dataset, key) is None:
                deep_value(dataset, key, clone(value))
        return dataset

    async def prepare(self, config: Any, defaults: Any) -> dict[str, Any]:
        """Layer a caller's configuration over the base chain and the component defaults.

        Layers merge lowest priority first: `defaults`, then the base
        configuration chain referenced by ``key``, then `config`. The reserved
        keys ``key`` and ``component`` are dropped from the result.

        Raises:
            BaseConfigChainError: If the base configuration chain does not terminate.
            InstanceBuildError: If `config` is neither a mapping nor a descriptor.
        """
        if is_dependency(config):
            config = await self._resolver.resolve_dependency(config)
        if config is None:
            config = {}
        if not isinstance(config, Mapping):
            raise InstanceBuildError(f"Configuration must be a mapping, got {type(config).__name__}")
        config = clone(dict(config))

        base = await self._base_chain(config.get(BASE_KEY), 0)
        layered = await self.integrate(base, defaults if isinstance(defaults, dict) else {})
        layered = await self.integrate(config, layered)
        for key in RESERVED_KEYS:
            layered.pop(key, None)
        return layered

    async def _base_chain(self, base: Any, depth: int) -> dict[str, Any]:
        if base is None:
            return {}
        if depth >= self._max_depth:
            raise BaseConfigChainError(self._max_depth)
        if is_dependency(base):
            base = await self._resolver.resolve_dependency(base)
        if not isinstance(base, Mapping):
            logger.debug("Ignoring base configuration of type %s", type(base).__name__)
            return {}
        base = clone(dict(base))
        lower = await self._base_chain(base.pop(BASE_KEY, None), depth + 1)
        return await self.integrate(base, lower)
