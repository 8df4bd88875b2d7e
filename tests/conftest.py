"""
Shared pytest fixtures for the entity store test suite.

Provides:
    - store_path: path of a not-yet-created data store file in tmp_path
    - sample_item_data: attribute bags for the five demo inventory items
    - populated_store: a store file already holding two inventory records
    - manager: an EntityManager over a fresh store
"""

import json
import sys
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Ensure entity_store/ is importable regardless of where pytest is invoked
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).resolve().parent.parent

if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from entity_store.entity_manager import EntityManager  # noqa: E402


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def store_path(tmp_path):
    """Return the path of a data store file that does not exist yet."""
    return str(tmp_path / "data_store.json")


@pytest.fixture
def sample_item_data():
    """Return attribute bags for five inventory items, all out of stock."""
    return [
        {"sku": "abc-4589", "qoh": 0, "cost": "5.67", "salePrice": "7.27"},
        {"sku": "hjg-3821", "qoh": 0, "cost": "7.89", "salePrice": "12.00"},
        {"sku": "xrf-3827", "qoh": 0, "cost": "15.27", "salePrice": "19.99"},
        {"sku": "eer-4521", "qoh": 0, "cost": "8.45", "salePrice": "1.03"},
        {"sku": "qws-6783", "qoh": 0, "cost": "3.00", "salePrice": "4.97"},
    ]


@pytest.fixture
def populated_store(store_path):
    """Write a store file holding two inventory records and return its path."""
    document = {
        "InventoryItem": {
            "abc-4589": {"sku": "abc-4589", "qoh": 4, "cost": 5.67, "salePrice": 7.27},
            "hjg-3821": {"sku": "hjg-3821", "qoh": 12, "cost": 7.89, "salePrice": 12.0},
        }
    }
    with open(store_path, "w", encoding="utf-8") as fh:
        json.dump(document, fh, indent=2)
    return store_path


@pytest.fixture
def manager(store_path):
    """Return an EntityManager over a brand-new, empty store."""
    return EntityManager.from_path(store_path)
