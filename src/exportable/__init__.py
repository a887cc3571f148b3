"""Exportable capability registry.

Exportable maps abstract capabilities (interface classes) to the concrete
provider instances exported for them, and lets consumers resolve providers by
capability without naming concrete types. Exports are discovered once into an
immutable registry; tests layer scoped overrides on top of it that are visible
only to the execution context that entered them.

Key Features:
    - Explicit capability and export declaration with profile filtering
    - Cardinality-checked queries: one, optional, all, at_least_one
    - Composable override scopes isolated per thread and asyncio task
    - Whole-registry verification that reports every broken export at once

Basic Usage:
    >>> from exportable.discovery import capability, exports
    >>> from exportable.resolver import imports
    >>> from exportable.overrides import replaced_exports
    >>>
    >>> @capability
    ... class Clock: ...
    >>>
    >>> @exports()
    ... class SystemClock(Clock): ...
    >>>
    >>> imports.one(Clock)              # the SystemClock instance
    >>> with replaced_exports({Clock: FrozenClock()}):
    ...     imports.one(Clock)          # the FrozenClock
    >>>

The package consists of several modules:
    - domain: Capabilities, exports and provider sets
    - discovery: Export registration and profile-filtered discovery
    - export_registry: The immutable capability to providers mapping
    - importers: Importer strategies and override operations
    - overrides: The default importer and context-local override scopes
    - resolver: The query facade and verification
    - errors: Package exceptions
"""
