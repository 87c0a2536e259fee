"""Shared test fixtures for the quiz service tests."""

import pytest

from catalog.models import CatalogEntry
from catalog.snapshot import write_snapshot
from quiz import logging_utils
from quiz.snapshot_store import clear_cache


def make_entry(csid, **overrides):
    """Build a catalog entry with sensible retail defaults."""
    values = {
        "retailer_join_id": csid.upper(),
        "brand": "Acme",
        "model_name": csid.title(),
        "product_url": f"https://shop.example/{csid}",
    }
    values.update(overrides)
    return CatalogEntry(csid=csid, **values)


@pytest.fixture
def entry_factory():
    return make_entry


@pytest.fixture
def catalog_entries():
    """Four bikes covering the scoring criteria.

    - city: commuting/leisure, road first, 500 Wh, 3 equipment flags, £1,999
    - mtb: trail, 750 Wh, no equipment, RRP £4,500 only
    - compact: commuting, gravel first, 300 Wh, lights only, £1,200
    - unpriced: leisure, no battery data, no price
    """
    return [
        make_entry(
            "city",
            model_name="City",
            use_cases="commuting,leisure",
            surfaces="road,gravel",
            battery_wh=500.0,
            equipped_lights="true",
            equipped_mudguards="true",
            equipped_rear_rack="true",
            equipped_kickstand="false",
            price_rrp_gbp=2199.0,
            price_sale_gbp=1999.0,
        ),
        make_entry(
            "mtb",
            brand="Bolt",
            model_name="Trail X",
            use_cases="trail",
            surfaces="trail",
            battery_wh=750.0,
            price_rrp_gbp=4500.0,
        ),
        make_entry(
            "compact",
            model_name="Compact",
            use_cases="commuting",
            surfaces="gravel,road",
            battery_wh=300.0,
            equipped_lights="true",
            price_sale_gbp=1200.0,
        ),
        make_entry("unpriced", model_name="Mystery", use_cases="leisure"),
    ]


@pytest.fixture(autouse=True)
def interaction_log_dir(tmp_path, monkeypatch):
    """Keep interaction logs out of the source tree."""
    log_dir = tmp_path / "logs"
    monkeypatch.setattr(logging_utils, "LOG_DIR", log_dir)
    yield log_dir
    clear_cache()


@pytest.fixture
def snapshot_path(tmp_path, catalog_entries):
    path = tmp_path / "bikes.json"
    write_snapshot(catalog_entries, path, generated_at="2025-01-31T09:15:00.000Z")
    return str(path)


@pytest.fixture
def app(snapshot_path):
    from quiz.app import create_app

    return create_app({"SNAPSHOT_PATH": snapshot_path, "TESTING": True})


@pytest.fixture
def client(app):
    """Create Flask test client."""
    with app.test_client() as test_client:
        yield test_client
