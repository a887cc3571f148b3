"""Registration and discovery of exports.

Exports are declared explicitly, with decorators or direct registration calls,
and collected by an :class:`ExportCollector`. At startup the collector is
*discovered* once into an immutable :class:`ExportRegistry`; nothing in the
resolution engine depends on how the exports were collected.

Basic Usage:
    >>> collector = ExportCollector()
    >>>
    >>> @collector.capability
    ... class Greeter:
    ...     def greet(self, name: str) -> str: ...
    >>>
    >>> @collector.exports()
    ... class EnglishGreeter(Greeter):
    ...     def greet(self, name: str) -> str:
    ...         return f"Hello {name}"
    >>>
    >>> registry = collector.discover()
    >>> registry.lookup(Greeter)  # ProviderSet([<EnglishGreeter>])
"""

import inspect
import logging
from typing import Any, Callable, Iterable, Optional

from exportable.domain import Export, capability as mark_capability, declared_capabilities
from exportable.errors import RegistrationError
from exportable.export_registry import ExportRegistry

__all__ = [
    "ExportCollector",
    "capability",
    "default_collector",
    "discover",
    "exports",
    "register",
]

logger = logging.getLogger(__name__)


def inferred_name(target: Any) -> str:
    """Derive an export name from a class, or from the class of an instance."""
    if inspect.isclass(target):
        return target.__name__
    return type(target).__name__


class ExportCollector:
    """Collects exports and capability declarations, with profile-based filtering."""

    def __init__(self):
        self._exports: list[Export] = []
        self._capabilities: list[type] = []

    def capability(self, cls: type) -> type:
        """Decorator marking a class as a capability known to this collector.

        Known capabilities appear in the discovered registry even when nothing
        exports them, so that verification can report them as missing.
        """
        mark_capability(cls)
        if cls not in self._capabilities:
            self._capabilities.append(cls)
        return cls

    def register(
        self,
        instance: Any,
        capabilities: Optional[Iterable[type]] = None,
        name: Optional[str] = None,
        profiles: Optional[list[str]] = None,
        singleton: bool = True,
    ) -> Export:
        """Register a pre-built provider instance explicitly.

        Args:
            instance: The provider handed out on every resolution.
            capabilities: Capabilities the provider satisfies. Defaults to the marked
                capabilities in the instance's type hierarchy.
            name: Optional logical name; defaults to the class name.
            profiles: Optional profiles for which the export is active.
            singleton: Whether the instance was registered directly rather than built
                from an exported class.

        Returns:
            The registered :class:`Export`.

        Raises:
            RegistrationError: If the provider declares no capabilities.
        """
        if inspect.isclass(instance):
            raise RegistrationError(
                f"{instance!r} is a class; register an instance or use @exports()"
            )
        declared = (
            frozenset(capabilities)
            if capabilities is not None
            else declared_capabilities(instance)
        )
        if not declared:
            raise RegistrationError(
                f"Export {name or inferred_name(instance)} does not satisfy any capability"
            )

        export = Export(
            instance,
            declared,
            singleton,
            name or inferred_name(instance),
            tuple(profiles or ()),
        )
        self._exports.append(export)
        logger.debug(
            "Registered export %s for %s",
            export.name,
            sorted(c.__qualname__ for c in declared),
        )
        return export

    def exports(
        self,
        capabilities: Optional[Iterable[type]] = None,
        name: Optional[str] = None,
        profiles: Optional[list[str]] = None,
    ) -> Callable:
        """Decorator exporting a class, or a module-level singleton object.

        A decorated class is instantiated once, with no arguments, and that one
        instance is returned by every resolution. The class itself is returned
        unchanged.

        Example:
            @collector.exports(profiles=["!test"])
            class SmtpMailer(Mailer):
                ...
        """
        if capabilities is not None:
            capabilities = frozenset(capabilities)

        def decorator(target: Any) -> Any:
            if inspect.isclass(target):
                try:
                    instance = target()
                except TypeError as e:
                    raise RegistrationError(
                        f"Exported class {target.__qualname__} cannot be built without arguments"
                    ) from e
                self.register(
                    instance,
                    capabilities,
                    name or inferred_name(target),
                    profiles,
                    singleton=False,
                )
            else:
                self.register(target, capabilities, name, profiles)
            return target

        return decorator

    def registered_exports(self, profiles: Optional[set[str]] = None) -> list[Export]:
        """Retrieve exports, optionally filtered by active profiles.

        Args:
            profiles: A set of active profile names. If None, returns all exports.

        Returns:
            The exports whose profiles match the given profile set.
        """
        if profiles is None:
            return list(self._exports)
        return [e for e in self._exports if _profiles_match(e.profiles, profiles)]

    def known_capabilities(self) -> list[type]:
        """Capabilities declared through this collector, in declaration order."""
        return list(self._capabilities)

    def discover(self, profiles: Optional[set[str]] = None) -> ExportRegistry:
        """Build the export registry from everything registered so far."""
        active = self.registered_exports(profiles)
        logger.debug(
            "Discovered %d of %d exports for profiles %s",
            len(active),
            len(self._exports),
            profiles,
        )
        return ExportRegistry.from_exports(active, self._capabilities)


def _profiles_match(stated: Iterable[str], selected: set[str]) -> bool:
    """Check if an export's profile requirements match the selected profiles.

    - Normal profiles ("dev", "prod"): at least one must be selected
    - Exclusion profiles ("!test"): none may be selected
    - No stated profiles: always active

    Example:
        >>> _profiles_match(["dev"], {"dev"})          # True
        >>> _profiles_match(["!test"], {"dev"})        # True
        >>> _profiles_match(["!test"], {"test"})       # False
        >>> _profiles_match(["prod"], {"dev"})         # False
    """
    required: set[str] = set()
    for profile in stated:
        if profile.startswith("!"):
            if profile[1:] in selected:
                return False
        else:
            required.add(profile)
    return not required or not required.isdisjoint(selected)


default_collector = ExportCollector()

capability = default_collector.capability
register = default_collector.register
exports = default_collector.exports
discover = default_collector.discover
