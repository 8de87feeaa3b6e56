import math
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

from src.models.types import (
    DEFAULT_CHLOROPHYLL_A,
    DEFAULT_CURRENT_SPEED,
    DEFAULT_DAYS_SINCE_CLEAN,
    DEFAULT_IDLE_HOURS,
    DEFAULT_VESSEL_SPEED,
    DEFAULT_WIND_SPEED,
    EnvironmentalReading,
)

# field -> (label, unit, min, max, required)
INPUT_RANGES = {
    "sea_temperature_c": ("Sea temperature", "°C", -2.0, 40.0, True),
    "salinity_psu": ("Salinity", "PSU", 0.0, 45.0, True),
    "vessel_speed_knots": ("Vessel speed", "knots", 0.0, 30.0, False),
    "idle_hours": ("Idle time", "hours", 0.0, 168.0, False),
    "days_since_clean": ("Days since cleaning", "days", 0, 365, False),
    "chlorophyll_a_mg_m3": ("Chlorophyll-a", "mg/m³", 0.0, 20.0, False),
    "wind_speed_mps": ("Wind speed", "m/s", 0.0, 50.0, False),
    "current_speed_mps": ("Current speed", "m/s", 0.0, 5.0, False),
}

DEFAULTS = {
    "vessel_speed_knots": DEFAULT_VESSEL_SPEED,
    "idle_hours": DEFAULT_IDLE_HOURS,
    "days_since_clean": DEFAULT_DAYS_SINCE_CLEAN,
    "chlorophyll_a_mg_m3": DEFAULT_CHLOROPHYLL_A,
    "wind_speed_mps": DEFAULT_WIND_SPEED,
    "current_speed_mps": DEFAULT_CURRENT_SPEED,
}

ENVIRONMENTAL_PRESETS = {
    "tropical": {
        "label": "Tropical Waters",
        "sea_temperature_c": 28.0,
        "salinity_psu": 36.0,
        "chlorophyll_a_mg_m3": 1.2,
    },
    "temperate": {
        "label": "Temperate Waters",
        "sea_temperature_c": 22.0,
        "salinity_psu": 34.0,
        "chlorophyll_a_mg_m3": 0.5,
    },
    "arctic": {
        "label": "Arctic Waters",
        "sea_temperature_c": 5.0,
        "salinity_psu": 32.0,
        "chlorophyll_a_mg_m3": 0.1,
    },
}


class InvalidReadingError(ValueError):
    """Raised when form input cannot be turned into a reading"""

    def __init__(self, errors: Dict[str, str]):
        self.errors = errors
        super().__init__("; ".join(errors.values()))


@dataclass
class ValidationResult:
    is_valid: bool
    errors: Dict[str, str] = field(default_factory=dict)


def _as_number(value: Any):
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def validate_environmental_data(data: Mapping[str, Any]) -> ValidationResult:
    """Check form input against the accepted ranges"""
    errors = {}

    for key, (label, unit, low, high, required) in INPUT_RANGES.items():
        value = data.get(key)
        if value is None or value == "":
            if required:
                errors[key] = f"{label} is required"
            continue

        number = _as_number(value)
        if number is None or not (low <= number <= high):
            errors[key] = f"{label} must be between {low:g} and {high:g} {unit}"

    return ValidationResult(is_valid=not errors, errors=errors)


def reading_from_form(data: Mapping[str, Any]) -> EnvironmentalReading:
    """Validate form input and build a reading with the documented fallbacks"""
    result = validate_environmental_data(data)
    if not result.is_valid:
        raise InvalidReadingError(result.errors)

    values = {}
    for key in INPUT_RANGES:
        value = data.get(key)
        if value is None or value == "":
            value = DEFAULTS[key]
        values[key] = float(value)
    values["days_since_clean"] = int(values["days_since_clean"])

    return EnvironmentalReading(**values)


def apply_preset(data: Mapping[str, Any], preset: str) -> Dict[str, Any]:
    """Overlay a named environmental preset on form data"""
    if preset not in ENVIRONMENTAL_PRESETS:
        raise ValueError(f"Unknown preset: {preset}")
    updated = dict(data)
    updated.update({k: v for k, v in ENVIRONMENTAL_PRESETS[preset].items() if k != "label"})
    return updated
