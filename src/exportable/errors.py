"""Exceptions raised by the export registry and resolver."""

from typing import Any, Iterable

__all__ = [
    "ExportError",
    "RegistrationError",
    "AmbiguousOrMissingExport",
    "MissingExport",
    "AmbiguousExport",
    "VerificationFailure",
]


def _describe(capability: Any) -> str:
    return getattr(capability, "__qualname__", None) or repr(capability)


class ExportError(Exception):
    """Base class for all errors raised by exportable."""

    pass


class RegistrationError(ExportError):
    """Raised when an export is declared in a way that cannot be registered."""

    pass


class AmbiguousOrMissingExport(ExportError):
    """Raised when a capability does not resolve to the number of providers required."""

    def __init__(self, capability: Any, message: str):
        super().__init__(message)
        self.capability = capability


class MissingExport(AmbiguousOrMissingExport):
    """Raised when no provider is exported for a capability that requires one."""

    def __init__(self, capability: Any):
        super().__init__(
            capability, f"No export found for capability {_describe(capability)}"
        )


class AmbiguousExport(AmbiguousOrMissingExport):
    """Raised when several providers are exported where at most one is allowed."""

    def __init__(self, capability: Any, providers: Iterable[Any]):
        self.providers = list(providers)
        self.count = len(self.providers)
        super().__init__(
            capability,
            f"Expected at most one export for capability {_describe(capability)}, "
            f"found {self.count}: {self.providers}",
        )


class VerificationFailure(ExportError):
    """Aggregate report of every capability that failed verification.

    Attributes:
        failures: List of ``(capability, reason)`` pairs, in the order checked.
    """

    def __init__(self, failures: list[tuple[Any, str]]):
        self.failures = failures
        lines = "\n".join(
            f"  - {_describe(capability)}: {reason}" for capability, reason in failures
        )
        super().__init__(f"{len(failures)} export(s) failed verification:\n{lines}")
