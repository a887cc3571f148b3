"""The base capability to provider mapping built from discovery output.

An ExportRegistry is constructed once, from the exports found at startup, and is
never mutated afterwards. It may therefore be read from any number of threads
without synchronisation.
"""

import logging
from collections import defaultdict
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, FrozenSet

from exportable.domain import Export, ProviderSet

__all__ = ["ExportRegistry"]

logger = logging.getLogger(__name__)


class ExportRegistry:
    """Read-only mapping from capability to the providers exported for it.

    Capabilities declared without any exports are still known to the registry and
    resolve to the empty set, so that verification can report them.

    Example:
        >>> registry = ExportRegistry.from_exports([Export(db, frozenset({Database}))])
        >>> registry.lookup(Database)  # ProviderSet([db])
        >>> registry.lookup(Cache)     # ProviderSet([])
    """

    def __init__(self, providers_by_capability: Mapping[type, ProviderSet]):
        self._providers_by_capability = MappingProxyType(dict(providers_by_capability))

    @classmethod
    def from_exports(
        cls, exports: Iterable[Export], capabilities: Iterable[type] = ()
    ) -> "ExportRegistry":
        """Index exports under every capability each of them declares.

        Args:
            exports: The discovered exports.
            capabilities: Additional known capabilities, which may have no exports.

        Returns:
            The registry. Providers equal under ``==`` are registered once per capability.
        """
        instances_by_capability: dict[type, list] = defaultdict(list)
        for known in capabilities:
            instances_by_capability.setdefault(known, [])
        for export in exports:
            for declared in export.capabilities:
                instances_by_capability[declared].append(export.instance)

        registry = cls(
            {
                declared: ProviderSet(instances)
                for declared, instances in instances_by_capability.items()
            }
        )
        logger.debug(
            "Built export registry with %d capabilities", len(registry)
        )
        return registry

    @classmethod
    def empty(cls) -> "ExportRegistry":
        return cls({})

    def lookup(self, capability: type) -> ProviderSet:
        """Return the providers exported for ``capability``, or the empty set if unknown."""
        return self._providers_by_capability.get(capability, ProviderSet.EMPTY)

    def capabilities(self) -> FrozenSet[type]:
        return frozenset(self._providers_by_capability)

    def __contains__(self, capability: object) -> bool:
        return capability in self._providers_by_capability

    def __iter__(self) -> Iterator[type]:
        return iter(self._providers_by_capability)

    def __len__(self) -> int:
        return len(self._providers_by_capability)

    def __repr__(self) -> str:
        return f"ExportRegistry({dict(self._providers_by_capability)!r})"
