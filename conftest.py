"""Pytest configuration and shared fixtures."""

import pytest

from src.models.types import EnvironmentalReading
from src.utils.data_manager import BiofoulingDataManager
from src.utils.config import PROJECT_ROOT


@pytest.fixture
def reference_reading():
    """Default predictor form: 25C, 35 PSU, 12 knots, 30 days since cleaning."""
    return EnvironmentalReading(
        sea_temperature_c=25.0,
        salinity_psu=35.0,
        vessel_speed_knots=12.0,
        idle_hours=0.0,
        days_since_clean=30,
        chlorophyll_a_mg_m3=0.5,
        wind_speed_mps=5.0,
        current_speed_mps=0.5,
    )


@pytest.fixture
def favourable_reading():
    """Warm, idle, nutrient-rich water with no wind or current."""
    return EnvironmentalReading(
        sea_temperature_c=28.0,
        salinity_psu=35.0,
        vessel_speed_knots=0.0,
        idle_hours=24.0,
        days_since_clean=365,
        chlorophyll_a_mg_m3=1.0,
        wind_speed_mps=0.0,
        current_speed_mps=0.0,
    )


@pytest.fixture
def data_manager():
    """Data manager over the bundled demo CSV."""
    return BiofoulingDataManager(PROJECT_ROOT / "data" / "demo_biofouling.csv")
