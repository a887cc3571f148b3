import pytest

from exportable.domain import Export, ProviderSet, capability
from exportable.errors import RegistrationError
from exportable.export_registry import ExportRegistry
from exportable.importers import (
    AddAllCapabilitiesOf,
    AddByCapability,
    ClearAll,
    DefaultImporter,
    Importer,
    OverridingImporter,
    Replace,
    layer,
)


@capability
class A:
    pass


@capability
class B:
    pass


@capability
class C:
    pass


class AB(A, B):
    pass


p1, p2, p3 = object(), object(), object()


@pytest.fixture
def base():
    return DefaultImporter(
        ExportRegistry({A: ProviderSet([p1]), B: ProviderSet([p2])})
    )


class ExplodingImporter(Importer):
    def resolve(self, capability):
        raise AssertionError("parent should not be consulted")

    def capabilities(self):
        return ()


def test_default_importer_reads_registry(base):
    assert base.resolve(A) == {p1}
    assert base.resolve(C) == set()


def test_replace_discards_parent_for_its_capability(base):
    importer = OverridingImporter(base, Replace(A, ProviderSet([p3])))

    assert importer.resolve(A) == {p3}
    assert importer.resolve(B) == {p2}


def test_replace_with_empty_set(base):
    importer = OverridingImporter(base, Replace(A, ProviderSet.EMPTY))

    assert importer.resolve(A) == set()


def test_add_by_capability_unions_with_parent(base):
    importer = OverridingImporter(base, AddByCapability(A, ProviderSet([p3, p1])))

    assert importer.resolve(A) == {p1, p3}
    assert importer.resolve(B) == {p2}


def test_add_all_capabilities_of_instance(base):
    ab = AB()
    importer = OverridingImporter(base, AddAllCapabilitiesOf(ab))

    assert importer.resolve(A) == {p1, ab}
    assert importer.resolve(B) == {p2, ab}
    assert importer.resolve(C) == set()


def test_add_all_capabilities_of_export_uses_explicit_capabilities(base):
    importer = OverridingImporter(
        base, AddAllCapabilitiesOf(Export(p3, frozenset({C})))
    )

    assert importer.resolve(A) == {p1}
    assert importer.resolve(C) == {p3}


def test_clear_all_ignores_parent():
    importer = OverridingImporter(ExplodingImporter(), ClearAll())

    assert importer.resolve(A) == set()


def test_layer_applies_last_operation_closest_to_resolver(base):
    importer = layer(
        base,
        [AddByCapability(A, ProviderSet([p3])), Replace(A, ProviderSet([p2]))],
    )

    assert importer.resolve(A) == {p2}


def test_layer_add_after_replace_extends_replacement(base):
    importer = layer(
        base,
        [Replace(A, ProviderSet([p2])), AddByCapability(A, ProviderSet([p3]))],
    )

    assert importer.resolve(A) == {p2, p3}


def test_operations_on_different_capabilities_are_independent(base):
    forward = layer(base, [Replace(A, ProviderSet([p3])), AddByCapability(B, ProviderSet([p1]))])
    backward = layer(base, [AddByCapability(B, ProviderSet([p1])), Replace(A, ProviderSet([p3]))])

    for capability in (A, B, C):
        assert forward.resolve(capability) == backward.resolve(capability)


def test_clear_all_masks_operations_beneath_it(base):
    importer = layer(base, [Replace(A, ProviderSet([p3])), ClearAll()])

    assert importer.resolve(A) == set()
    assert importer.resolve(B) == set()


def test_operations_above_clear_all_still_apply(base):
    importer = layer(base, [ClearAll(), AddByCapability(A, ProviderSet([p3]))])

    assert importer.resolve(A) == {p3}
    assert importer.resolve(B) == set()


def test_layer_without_operations_is_the_importer_itself(base):
    assert layer(base, []) is base


def test_add_all_capabilities_of_rejects_provider_without_capabilities():
    with pytest.raises(RegistrationError, match="does not satisfy any capability"):
        AddAllCapabilitiesOf(object())


def test_known_capabilities_come_from_the_registry_beneath_overrides(base):
    importer = layer(base, [ClearAll(), Replace(C, ProviderSet([p3]))])

    assert base.capabilities() == (A, B)
    assert importer.capabilities() == (A, B)
