"""Domain models used throughout the registry.

Capabilities are plain classes used as lookup keys, compared by identity.
Exports are pre-built provider instances together with the set of
capabilities they were declared to satisfy, and a ProviderSet is the
immutable collection of providers a capability resolves to.
"""

import inspect
from collections.abc import Set as AbstractSet
from dataclasses import dataclass, field
from itertools import chain
from typing import Any, FrozenSet, Iterable, Iterator

from exportable.errors import RegistrationError

__all__ = [
    "Capability",
    "Export",
    "ProviderSet",
    "as_export",
    "capability",
    "declared_capabilities",
    "is_capability",
]


Capability = type
"""Type alias for capability keys.

A capability is the class object of an abstract interface. Two distinct classes
are always distinct capabilities, even if they declare identical members.
"""

_CAPABILITY_MARK = "__exportable_capability__"


def capability(cls: type) -> type:
    """Mark a class as a capability that exports can be resolved by.

    The mark is stored in the class's own namespace, so subclasses of a
    capability are not capabilities themselves unless marked too.

    Example:
        >>> @capability
        ... class Greeter:
        ...     def greet(self, name: str) -> str: ...
    """
    if not inspect.isclass(cls):
        raise RegistrationError(f"{cls!r} is not a class and cannot be a capability")
    setattr(cls, _CAPABILITY_MARK, True)
    return cls


def is_capability(target: Any) -> bool:
    """True if ``target`` is a class marked with :func:`capability` itself."""
    return inspect.isclass(target) and bool(target.__dict__.get(_CAPABILITY_MARK))


def declared_capabilities(instance: Any) -> FrozenSet[type]:
    """Return every marked capability in the type hierarchy of ``instance``.

    Example:
        >>> @capability
        ... class Trait1: ...
        >>> class Exported(Trait1): ...
        >>> declared_capabilities(Exported())  # frozenset({Trait1})
    """
    return frozenset(t for t in type(instance).__mro__ if is_capability(t))


@dataclass(frozen=True)
class Export:
    """A provider instance registered under one or more capabilities.

    Attributes:
        instance: The provider object handed out on resolution.
        capabilities: The capabilities this provider satisfies, fixed at registration.
        singleton: True if the instance was registered directly as a shared object,
            False if it was built once from an exported class.
        name: Logical name used in logs and error messages.
        profiles: Profiles under which the export is active. Empty means always.
    """

    instance: Any
    capabilities: FrozenSet[type]
    singleton: bool = True
    name: str = ""
    profiles: tuple[str, ...] = field(default=())


def as_export(provider: Any) -> Export:
    """Wrap a raw provider instance as an :class:`Export`, leaving exports untouched."""
    if isinstance(provider, Export):
        return provider
    return Export(
        provider,
        declared_capabilities(provider),
        True,
        type(provider).__name__,
    )


class ProviderSet(AbstractSet):
    """Immutable, unordered collection of the providers for one capability.

    Providers are de-duplicated using their own ``==``, so they do not need to be
    hashable. Iteration follows insertion order, which keeps error messages and
    test output reproducible, but equality ignores order: a ProviderSet equals
    any other ``Set`` holding the same providers.

    Example:
        >>> ProviderSet([a, b, a]) == {a, b}
        True
    """

    __slots__ = ("_providers",)

    EMPTY: "ProviderSet"

    def __init__(self, providers: Iterable[Any] = ()):
        unique: list[Any] = []
        for provider in providers:
            if not any(provider == existing for existing in unique):
                unique.append(provider)
        self._providers = tuple(unique)

    def __contains__(self, item: Any) -> bool:
        return any(item == provider for provider in self._providers)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._providers)

    def __len__(self) -> int:
        return len(self._providers)

    def __repr__(self) -> str:
        return f"ProviderSet({list(self._providers)!r})"

    def union(self, providers: Iterable[Any]) -> "ProviderSet":
        """Return a new set holding these providers followed by ``providers``."""
        return ProviderSet(chain(self._providers, providers))


ProviderSet.EMPTY = ProviderSet()
