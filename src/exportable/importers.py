"""Resolution strategies mapping a capability to its providers.

An :class:`Importer` answers a single question: which providers does a capability
resolve to? The :class:`DefaultImporter` reads the export registry directly, and
an :class:`OverridingImporter` wraps a parent importer with one override
operation. Chaining overriding importers composes overrides: the operation
closest to the resolver is applied last, so it wins over those beneath it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from functools import reduce
from typing import Any, Iterable

from exportable.domain import Export, ProviderSet, as_export
from exportable.errors import RegistrationError
from exportable.export_registry import ExportRegistry

__all__ = [
    "Importer",
    "DefaultImporter",
    "OverridingImporter",
    "OverrideOperation",
    "Replace",
    "AddByCapability",
    "AddAllCapabilitiesOf",
    "ClearAll",
    "layer",
]


class Importer(ABC):
    """Resolves capabilities to provider sets. Implementations must be side-effect free."""

    @abstractmethod
    def resolve(self, capability: type) -> ProviderSet:
        ...

    @abstractmethod
    def capabilities(self) -> tuple[type, ...]:
        """Every capability known to the underlying export registry, in registration order."""
        ...


class DefaultImporter(Importer):
    """Importer backed by the export registry built at discovery time."""

    def __init__(self, registry: ExportRegistry):
        self.registry = registry

    def resolve(self, capability: type) -> ProviderSet:
        return self.registry.lookup(capability)

    def capabilities(self) -> tuple[type, ...]:
        return tuple(self.registry)

    def __repr__(self) -> str:
        return f"DefaultImporter({len(self.registry)} capabilities)"


class OverrideOperation(ABC):
    """A single change applied on top of a parent importer's result."""

    #: False for operations that ignore the parent result entirely.
    consults_parent = True

    @abstractmethod
    def apply(self, capability: type, parent_result: ProviderSet) -> ProviderSet:
        ...


@dataclass(frozen=True)
class Replace(OverrideOperation):
    """Resolve ``capability`` to exactly ``providers``, discarding the parent result."""

    capability: type
    providers: ProviderSet

    def apply(self, capability: type, parent_result: ProviderSet) -> ProviderSet:
        return self.providers if capability == self.capability else parent_result


@dataclass(frozen=True)
class AddByCapability(OverrideOperation):
    """Add ``providers`` to whatever the parent resolves ``capability`` to."""

    capability: type
    providers: ProviderSet

    def apply(self, capability: type, parent_result: ProviderSet) -> ProviderSet:
        if capability != self.capability:
            return parent_result
        return parent_result.union(self.providers)


@dataclass(frozen=True)
class AddAllCapabilitiesOf(OverrideOperation):
    """Add a provider under every capability it declares, as if it had been discovered.

    Accepts either a raw instance, whose capabilities are read from its type
    hierarchy, or an :class:`Export` carrying explicit capabilities.
    """

    export: Export

    def __init__(self, provider: Any):
        export = as_export(provider)
        if not export.capabilities:
            raise RegistrationError(
                f"Export {export.name} does not satisfy any capability"
            )
        object.__setattr__(self, "export", export)

    def apply(self, capability: type, parent_result: ProviderSet) -> ProviderSet:
        if capability not in self.export.capabilities:
            return parent_result
        return parent_result.union([self.export.instance])


@dataclass(frozen=True)
class ClearAll(OverrideOperation):
    """Resolve every capability to the empty set, masking everything beneath it."""

    consults_parent = False

    def apply(self, capability: type, parent_result: ProviderSet) -> ProviderSet:
        return ProviderSet.EMPTY


class OverridingImporter(Importer):
    """Importer applying one override operation to the result of a parent importer."""

    def __init__(self, parent: Importer, operation: OverrideOperation):
        self.parent = parent
        self.operation = operation

    def resolve(self, capability: type) -> ProviderSet:
        parent_result = (
            self.parent.resolve(capability)
            if self.operation.consults_parent
            else ProviderSet.EMPTY
        )
        return self.operation.apply(capability, parent_result)

    def capabilities(self) -> tuple[type, ...]:
        return self.parent.capabilities()

    def __repr__(self) -> str:
        return f"OverridingImporter({self.operation!r}, parent={self.parent!r})"


def layer(importer: Importer, operations: Iterable[OverrideOperation]) -> Importer:
    """Chain ``operations`` on top of ``importer``.

    The first operation is closest to ``importer``; the last is applied last and
    therefore wins for any capability it targets.

    Example:
        >>> layered = layer(base, [AddByCapability(A, ProviderSet([p3])), Replace(A, ProviderSet([p2]))])
        >>> layered.resolve(A)  # ProviderSet([p2])
    """
    return reduce(OverridingImporter, operations, importer)
