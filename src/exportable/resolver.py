"""Query surface for resolving exports by capability.

Consumers ask an :class:`Import` for the providers of a capability under one of
four cardinality contracts:

    ============== ========== =========== ==============
    query          0 found    1 found     2+ found
    ============== ========== =========== ==============
    one            Missing    provider    Ambiguous
    optional       None       provider    Ambiguous
    all            empty set  set         set
    at_least_one   Missing    set         set
    ============== ========== =========== ==============

``Import()`` resolves through whichever importer is active for the calling context,
so scoped overrides apply. ``Import(importer)`` pins a specific importer and
ignores both the default and any override, which lets a test reach production
wiring from inside an override scope.
"""

from enum import Enum
from typing import Any, Iterable, Mapping, Optional

from exportable.domain import ProviderSet
from exportable.errors import (
    AmbiguousExport,
    AmbiguousOrMissingExport,
    MissingExport,
    VerificationFailure,
)
from exportable.importers import Importer
from exportable.overrides import current_importer, default_importer

__all__ = ["Cardinality", "Import", "imports", "verify"]


class Import:
    """Resolver facade over an importer.

    Args:
        importer: Importer to resolve against. If None, the importer active for the
            calling execution context is looked up on every query.
    """

    def __init__(self, importer: Optional[Importer] = None):
        self._importer = importer

    @classmethod
    def production(cls) -> "Import":
        """Resolver pinned to the process-wide default importer, bypassing overrides."""
        return cls(default_importer())

    @property
    def importer(self) -> Importer:
        return self._importer if self._importer is not None else current_importer()

    def all(self, capability: type) -> ProviderSet:
        """Return every provider of ``capability``, possibly none."""
        return self.importer.resolve(capability)

    def one(self, capability: type) -> Any:
        """Return the single provider of ``capability``.

        Raises:
            MissingExport: If nothing is exported for ``capability``.
            AmbiguousExport: If more than one provider is exported.
        """
        providers = self.all(capability)
        if len(providers) == 0:
            raise MissingExport(capability)
        if len(providers) > 1:
            raise AmbiguousExport(capability, providers)
        return next(iter(providers))

    def optional(self, capability: type) -> Optional[Any]:
        """Return the single provider of ``capability``, or None if there is none.

        Raises:
            AmbiguousExport: If more than one provider is exported.
        """
        providers = self.all(capability)
        if len(providers) > 1:
            raise AmbiguousExport(capability, providers)
        return next(iter(providers), None)

    def at_least_one(self, capability: type) -> ProviderSet:
        """Return the providers of ``capability``, requiring at least one.

        Raises:
            MissingExport: If nothing is exported for ``capability``.
        """
        providers = self.all(capability)
        if len(providers) == 0:
            raise MissingExport(capability)
        return providers


imports = Import()


class Cardinality(Enum):
    """The query a capability is expected to satisfy during verification."""

    ONE = "one"
    OPTIONAL = "optional"
    ALL = "all"
    AT_LEAST_ONE = "at_least_one"

    def check(self, resolver: Import, capability: type) -> None:
        getattr(resolver, self.value)(capability)


def verify(
    expectations: Optional[Mapping[type, Cardinality]] = None,
    default: Cardinality = Cardinality.AT_LEAST_ONE,
    importer: Optional[Importer] = None,
) -> None:
    """Check that production wiring satisfies the expected cardinality of every capability.

    Every capability known to the export registry is checked, plus any named in
    ``expectations``. Resolution uses the process-wide default importer, so active
    override scopes are ignored. All failures are collected before reporting.

    Args:
        expectations: Expected cardinality per capability; others use ``default``.
        default: Cardinality for capabilities without an explicit expectation.
        importer: Importer to verify instead of the process-wide default.

    Raises:
        VerificationFailure: Listing every capability that failed its check.

    Example:
        >>> verify({Clock: Cardinality.ONE, Plugin: Cardinality.ALL})
    """
    expectations = dict(expectations or {})
    resolver = Import(importer if importer is not None else default_importer())

    failures: list[tuple[type, str]] = []
    for capability in _capabilities_to_check(resolver.importer, expectations):
        cardinality = expectations.get(capability, default)
        try:
            cardinality.check(resolver, capability)
        except AmbiguousOrMissingExport as e:
            failures.append((capability, str(e)))

    if failures:
        raise VerificationFailure(failures)


def _capabilities_to_check(
    importer: Importer, expectations: Mapping[type, Cardinality]
) -> Iterable[type]:
    known = list(importer.capabilities())
    return known + [c for c in expectations if c not in known]
