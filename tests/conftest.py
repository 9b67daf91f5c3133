import pytest

from tests.helpers.factories import build_chain


@pytest.fixture
def sample_chain():
    """[100:A, 200:B, 300:C, 300:D, 500:E] (index:account)"""
    return build_chain([(100, "A"), (200, "B"), (300, "C"), (300, "D"), (500, "E")])
