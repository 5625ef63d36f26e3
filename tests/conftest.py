"""
Shared fixtures.

Every test runs against in-memory storage and a fixed "today", so nothing
touches the filesystem or depends on the wall clock.
"""

import pytest

from budget_ledger.audit import AuditLogger
from budget_ledger.ledger import LedgerStore
from budget_ledger.models import Category, CategoryType, default_settings
from budget_ledger.services.storage import InMemoryDocumentStorage

from factories import TODAY


@pytest.fixture
def settings():
    return default_settings()


@pytest.fixture
def nested_settings():
    """Default categories plus food -> groceries / restaurants."""
    base = default_settings()
    extra = [
        Category(id="groceries", name="Groceries", icon="🥦",
                 type=CategoryType.EXPENSE, parent_id="food"),
        Category(id="restaurants", name="Restaurants", icon="🍽️",
                 type=CategoryType.EXPENSE, parent_id="food"),
    ]
    return base.model_copy(update={"categories": base.categories + extra})


@pytest.fixture
def storage():
    return InMemoryDocumentStorage()


@pytest.fixture
def store(settings, storage):
    return LedgerStore(settings, storage, audit_logger=AuditLogger(), clock=lambda: TODAY)
