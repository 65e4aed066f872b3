"""
Pytest configuration and shared fixtures.

Adds the project root to the Python path so that tests can import domain,
repositories, services and api, and provides a seeded in-memory store.

Seed data:
- P-PETROL (Fuel, 270.00) stored in T-1 (capacity 20000, stock 1000, alert 500)
- P-DIESEL (Fuel, 280.00) stored in T-2 (capacity 15000, stock 5000, alert 1000)
- P-OIL (no category, 1500.00), no tank
- Dispenser D-1 with nozzles N-1 (petrol, meter 1200) and N-2 (diesel, meter 500)
"""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add the project root to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from domain.calibration import DipChartCalibration  # noqa: E402
from repositories.document_store import DISPENSERS, NOZZLES, PRODUCTS, TANKS  # noqa: E402
from repositories.memory_store import InMemoryDocumentStore  # noqa: E402

NOW = datetime(2025, 3, 10, 9, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def store() -> InMemoryDocumentStore:
    s = InMemoryDocumentStore()
    s.seed(
        PRODUCTS,
        [
            {"id": "P-PETROL", "name": "Petrol", "category": "Fuel", "sales_price": "270.00",
             "purchase_price": "255.00", "tank_id": "T-1", "price_history": []},
            {"id": "P-DIESEL", "name": "Diesel", "category": "Fuel", "sales_price": "280.00",
             "purchase_price": "262.00", "tank_id": "T-2", "price_history": []},
            {"id": "P-OIL", "name": "Engine Oil", "category": None, "sales_price": "1500.00",
             "price_history": []},
        ],
    )
    s.seed(
        TANKS,
        [
            {"id": "T-1", "name": "Tank 1", "product_id": "P-PETROL", "capacity": "20000",
             "remaining_stock": "1000", "alert_threshold": "500", "version": 0},
            {"id": "T-2", "name": "Tank 2", "product_id": "P-DIESEL", "capacity": "15000",
             "remaining_stock": "5000", "alert_threshold": "1000", "version": 0},
        ],
    )
    s.seed(DISPENSERS, [{"id": "D-1", "name": "Dispenser 1", "location": "Forecourt", "status": "active"}])
    s.seed(
        NOZZLES,
        [
            {"id": "N-1", "dispenser_id": "D-1", "product_id": "P-PETROL", "tank_id": "T-1",
             "position": "1", "last_reading": "1200", "total_sales": "0", "version": 0},
            {"id": "N-2", "dispenser_id": "D-1", "product_id": "P-DIESEL", "tank_id": "T-2",
             "position": "2", "last_reading": "500", "total_sales": "0", "version": 0},
        ],
    )
    return s


@pytest.fixture
def calibration() -> DipChartCalibration:
    return DipChartCalibration.from_arrays([0, 10, 20], [0, 100, 300])


@pytest.fixture
def station_calibration() -> DipChartCalibration:
    """Realistic table: 0-2000 mm in 500 mm steps."""
    return DipChartCalibration.from_arrays(
        [0, 500, 1000, 1500, 2000],
        [0, 3000, 8000, 14000, 19000],
    )


@pytest.fixture
def client(store, station_calibration):
    from fastapi.testclient import TestClient

    from api.dependencies import get_calibration, get_store
    from api.main import app

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_calibration] = lambda: station_calibration
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
