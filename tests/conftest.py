"""
Shared fixtures: canned card data and mock handlers.
"""

import pytest

from card_fetcher.card_fetcher.mock import MockConfig, MockHandler
from card_fetcher.card_fetcher.models import Metadata
from card_fetcher.card_fetcher.sheet import Sheet

from factories import make_card_info, make_creator_info, make_mock_data, make_sheet


@pytest.fixture
def metadata() -> Metadata:
    return Metadata(source="mock", card_info=make_card_info(), creator_info=make_creator_info())


@pytest.fixture
def sheet() -> Sheet:
    return make_sheet()


@pytest.fixture
def mock_handler() -> MockHandler:
    return MockHandler(MockConfig(), make_mock_data())
