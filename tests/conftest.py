import pytest

from exportable import overrides


@pytest.fixture(autouse=True)
def reset_default_importer():
    overrides.reset_default()
    yield
    overrides.reset_default()
