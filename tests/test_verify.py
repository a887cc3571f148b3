import pytest

from exportable.discovery import ExportCollector
from exportable.domain import ProviderSet
from exportable.errors import VerificationFailure
from exportable.export_registry import ExportRegistry
from exportable.importers import DefaultImporter, Importer
from exportable.overrides import install, no_exports, replaced_exports
from exportable.resolver import Cardinality, verify


@pytest.fixture
def collector():
    return ExportCollector()


@pytest.fixture
def capabilities(collector):
    @collector.capability
    class Clock:
        pass

    @collector.capability
    class Plugin:
        pass

    @collector.capability
    class Mailer:
        pass

    return Clock, Plugin, Mailer


@pytest.fixture
def wired(collector, capabilities):
    Clock, Plugin, Mailer = capabilities

    @collector.exports()
    class SystemClock(Clock):
        pass

    @collector.exports()
    class Audit(Plugin):
        pass

    @collector.exports()
    class Metrics(Plugin):
        pass

    @collector.exports()
    class SmtpMailer(Mailer):
        pass

    install(collector.discover())
    return capabilities


def test_passes_when_every_capability_has_an_export(wired):
    assert verify() is None


def test_reports_every_failure_at_once(collector, capabilities):
    Clock, Plugin, Mailer = capabilities

    @collector.exports()
    class FirstPlugin(Plugin):
        pass

    @collector.exports()
    class SecondPlugin(Plugin):
        pass

    install(collector.discover())

    with pytest.raises(VerificationFailure, match="3 export\\(s\\) failed") as e:
        verify({Plugin: Cardinality.ONE})

    assert [capability for capability, _ in e.value.failures] == [Clock, Plugin, Mailer]


def test_expectations_select_cardinality(wired):
    Clock, Plugin, Mailer = wired

    with pytest.raises(VerificationFailure) as e:
        verify({Clock: Cardinality.ONE, Plugin: Cardinality.ONE})

    ((capability, reason),) = e.value.failures
    assert capability is Plugin
    assert "found 2" in reason


def test_unlisted_capabilities_use_default_cardinality(wired):
    Clock, Plugin, Mailer = wired

    assert verify({Mailer: Cardinality.OPTIONAL}, default=Cardinality.ALL) is None


def test_ignores_active_overrides(wired):
    Clock, Plugin, Mailer = wired

    with no_exports():
        assert verify() is None
    with replaced_exports({Clock: []}):
        assert verify() is None


def test_capabilities_named_only_in_expectations_are_checked(wired):
    class Unregistered:
        pass

    with pytest.raises(VerificationFailure) as e:
        verify({Unregistered: Cardinality.AT_LEAST_ONE})

    assert [capability for capability, _ in e.value.failures] == [Unregistered]


def test_verifies_explicit_importer(wired):
    Clock, Plugin, Mailer = wired
    importer = DefaultImporter(ExportRegistry({Clock: ProviderSet.EMPTY}))

    with pytest.raises(VerificationFailure) as e:
        verify(importer=importer)

    assert [capability for capability, _ in e.value.failures] == [Clock]


class LoggingImporter(Importer):
    def __init__(self, inner):
        self.inner = inner
        self.resolved = []

    def resolve(self, capability):
        self.resolved.append(capability)
        return self.inner.resolve(capability)

    def capabilities(self):
        return self.inner.capabilities()


def test_checks_capabilities_known_to_a_custom_installed_importer(capabilities):
    Clock, Plugin, Mailer = capabilities
    importer = install(
        LoggingImporter(DefaultImporter(ExportRegistry({Clock: ProviderSet.EMPTY})))
    )

    with pytest.raises(VerificationFailure) as e:
        verify()

    assert [capability for capability, _ in e.value.failures] == [Clock]
    assert importer.resolved == [Clock]
