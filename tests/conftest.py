"""
Shared pytest fixtures and configuration for cursorpager tests.

This module provides common fixtures used across unit and integration tests,
including sample datasets, key specs and scripted page fetch functions.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from cursorpager import CursorPage, InMemorySource, KeyField, KeySpec
from tests.helpers.pages import ScriptedFetch
from tests.helpers.products import Product


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests with scripted dependencies")
    config.addinivalue_line("markers", "integration: End-to-end pagination over in-memory sources")


@pytest.fixture
def scenario_rows() -> list[dict[str, Any]]:
    """The three-row compound key dataset: (1, a), (1, b), (2, a)."""
    return [
        {"col1": 2, "col2": "a"},
        {"col1": 1, "col2": "b"},
        {"col1": 1, "col2": "a"},
    ]


@pytest.fixture
def scenario_spec() -> KeySpec:
    return KeySpec.of({"col1": int, "col2": str})


@pytest.fixture
def products() -> list[Product]:
    """
    Products with many duplicate categories and prices, so compound keys
    have to break ties on the later columns.
    """
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    categories = ["books", "games", "music", "tools"]
    return [
        Product(
            id=i,
            category=categories[(i * 7) % len(categories)],
            price=float((i * 13) % 5),
            created_at=base + timedelta(hours=(i * 11) % 9),
        )
        for i in range(1, 38)
    ]


@pytest.fixture
def product_source(products) -> InMemorySource[Product]:
    return InMemorySource(products)


@pytest.fixture
def id_key() -> KeyField:
    return KeyField("id", int)


@pytest.fixture
def three_pages() -> list[CursorPage[int]]:
    return [
        CursorPage(items=[1, 2, 3], next_cursor="3"),
        CursorPage(items=[4, 5, 6], next_cursor="6"),
        CursorPage(items=[7, 8], next_cursor=None),
    ]


@pytest.fixture
def scripted_fetch(three_pages) -> ScriptedFetch:
    return ScriptedFetch(three_pages)
