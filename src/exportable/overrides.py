"""Process-wide default importer and scoped, context-local overrides.

Resolution always goes through the *current* importer: the override installed
for the calling execution context if there is one, otherwise the process-wide
default built from discovery. Overrides are kept in a :class:`~contextvars.ContextVar`,
so each thread and each asyncio task sees only the scopes it entered itself
(or inherited from the context that created it).

Every scoped entry point is a context manager, usable as a decorator too::

    with replaced_exports({Trait1: Mock()}):
        assert imports.one(Trait1) is ...

    @no_exports()
    def test_without_any_exports(): ...

Scopes nest: an inner scope layers on top of whatever the outer one installed,
and leaving a scope restores the previous importer on every exit path.
"""

import logging
import os
import threading
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Callable, Iterator, Mapping, Optional, TypeVar, Union

from exportable import discovery
from exportable.domain import ProviderSet
from exportable.export_registry import ExportRegistry
from exportable.importers import (
    AddAllCapabilitiesOf,
    AddByCapability,
    ClearAll,
    DefaultImporter,
    Importer,
    OverrideOperation,
    Replace,
    layer,
)

__all__ = [
    "PROFILES_ENV_VAR",
    "current_importer",
    "default_importer",
    "exports_by_type",
    "extra_exports",
    "install",
    "no_exports",
    "overriding",
    "profiles_from_env",
    "replaced_exports",
    "reset_default",
    "with_exports",
    "with_exports_by_type",
    "with_no_exports",
    "with_replaced_exports",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")

PROFILES_ENV_VAR = "EXPORTABLE_PROFILES"

_default_importer: Optional[Importer] = None
_default_lock = threading.Lock()

_ACTIVE_OVERRIDE: ContextVar[Optional[Importer]] = ContextVar(
    "exportable_active_override", default=None
)


def profiles_from_env() -> Optional[set[str]]:
    """Read the active profiles for default discovery from the environment.

    Returns:
        The comma-separated profile names in ``EXPORTABLE_PROFILES``, or None if the
        variable is unset, meaning no profile filtering.
    """
    raw = os.environ.get(PROFILES_ENV_VAR)
    if raw is None:
        return None
    return {profile.strip() for profile in raw.split(",") if profile.strip()}


def install(source: Union[ExportRegistry, Importer]) -> Importer:
    """Install the process-wide default importer.

    Intended to be called once at startup with the output of discovery.

    Args:
        source: An export registry, wrapped in a DefaultImporter, or a ready-made importer.

    Returns:
        The installed importer.
    """
    global _default_importer
    importer = DefaultImporter(source) if isinstance(source, ExportRegistry) else source
    with _default_lock:
        _default_importer = importer
    logger.debug("Installed default importer %r", importer)
    return importer


def default_importer() -> Importer:
    """Return the process-wide default importer, ignoring any active override.

    If nothing was installed, the default collector is discovered once, filtered by
    the profiles in ``EXPORTABLE_PROFILES``.
    """
    global _default_importer
    importer = _default_importer
    if importer is not None:
        return importer
    with _default_lock:
        if _default_importer is None:
            profiles = profiles_from_env()
            logger.debug("No default importer installed; discovering with profiles %s", profiles)
            _default_importer = DefaultImporter(discovery.discover(profiles))
        return _default_importer


def reset_default() -> None:
    """Forget the installed default importer, so the next lookup rediscovers."""
    global _default_importer
    with _default_lock:
        _default_importer = None


def current_importer() -> Importer:
    """Return the importer active for the calling execution context."""
    override = _ACTIVE_OVERRIDE.get()
    return override if override is not None else default_importer()


@contextmanager
def overriding(*operations: OverrideOperation) -> Iterator[Importer]:
    """Layer ``operations`` over the current importer for the duration of the block.

    Operations apply in the order given, the last one closest to the resolver.

    Yields:
        The layered importer active inside the block.
    """
    importer = layer(current_importer(), operations)
    token = _ACTIVE_OVERRIDE.set(importer)
    logger.debug("Entered override scope %r", operations)
    try:
        yield importer
    finally:
        _ACTIVE_OVERRIDE.reset(token)
        logger.debug("Left override scope %r", operations)


def replaced_exports(mapping: Mapping[type, Any]):
    """Resolve each listed capability to exactly the given providers inside the block."""
    return overriding(
        *(Replace(c, _provider_set(providers)) for c, providers in mapping.items())
    )


def exports_by_type(mapping: Mapping[type, Any]):
    """Add the given providers to each listed capability inside the block."""
    return overriding(
        *(
            AddByCapability(c, _provider_set(providers))
            for c, providers in mapping.items()
        )
    )


def extra_exports(*providers: Any):
    """Add each provider under every capability it declares inside the block."""
    return overriding(*(AddAllCapabilitiesOf(provider) for provider in providers))


def no_exports():
    """Resolve every capability to the empty set inside the block."""
    return overriding(ClearAll())


def with_replaced_exports(mapping: Mapping[type, Any], block: Callable[[], T]) -> T:
    with replaced_exports(mapping):
        return block()


def with_exports_by_type(mapping: Mapping[type, Any], block: Callable[[], T]) -> T:
    with exports_by_type(mapping):
        return block()


def with_exports(*providers: Any, block: Callable[[], T]) -> T:
    with extra_exports(*providers):
        return block()


def with_no_exports(block: Callable[[], T]) -> T:
    with no_exports():
        return block()


def _provider_set(providers: Any) -> ProviderSet:
    """Unpack concrete collections; anything else, mocks and mappings included, is one provider."""
    if isinstance(providers, ProviderSet):
        return providers
    if isinstance(providers, (set, frozenset, list, tuple)):
        return ProviderSet(providers)
    return ProviderSet([providers])
