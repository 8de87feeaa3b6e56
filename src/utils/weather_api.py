# src/utils/weather_api.py
import requests
import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from src.utils.config import STORMGLASS_API_KEY, STORMGLASS_BASE_URL
from src.models.types import EnvironmentalReading

FALLBACK_SEA_TEMPERATURE = 25.0  # C
FALLBACK_SALINITY = 35.0  # PSU

# Preferred data sources, most trusted first
SOURCE_PRIORITY = ('sg', 'noaa', 'meto', 'icon', 'dwd')


class APIError(Exception):
    """Custom exception for marine data API errors"""
    pass


class MarineConditionsAPI:
    def __init__(self, api_key: Optional[str] = None, session: Optional[requests.Session] = None,
                 base_url: str = STORMGLASS_BASE_URL, timeout: int = 10):
        self.api_key = api_key if api_key is not None else STORMGLASS_API_KEY
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

    def get_conditions(self, lat: float, lon: float, vessel_speed_knots: float = 10.0,
                       idle_hours: float = 0.0, days_since_clean: int = 0) -> EnvironmentalReading:
        """Get current sea conditions at a position, or fallback values if unavailable"""
        try:
            return self.fetch_conditions(lat, lon, vessel_speed_knots, idle_hours, days_since_clean)
        except APIError as e:
            self.logger.error(f"Error fetching marine conditions: {str(e)}")
            return self._get_fallback_reading(vessel_speed_knots, idle_hours, days_since_clean)

    def fetch_conditions(self, lat: float, lon: float, vessel_speed_knots: float = 10.0,
                         idle_hours: float = 0.0, days_since_clean: int = 0) -> EnvironmentalReading:
        """Fetch sea conditions at a position, raising APIError on failure"""
        weather = self._get_current_hour('weather/point', lat, lon,
                                         ['waterTemperature', 'windSpeed', 'currentSpeed'])
        bio = self._get_current_hour('bio/point', lat, lon, ['salinity', 'chlorophyll'])

        sea_temperature = self._value(weather, 'waterTemperature')
        salinity = self._value(bio, 'salinity')
        if sea_temperature is None or salinity is None:
            raise APIError("Response is missing water temperature or salinity")

        reading = EnvironmentalReading(
            sea_temperature_c=sea_temperature,
            salinity_psu=salinity,
            vessel_speed_knots=vessel_speed_knots,
            idle_hours=idle_hours,
            days_since_clean=days_since_clean,
            chlorophyll_a_mg_m3=self._value(bio, 'chlorophyll', 0.5),
            wind_speed_mps=self._value(weather, 'windSpeed', 5.0),
            current_speed_mps=self._value(weather, 'currentSpeed', 0.5),
        )
        self.logger.info(f"Marine conditions at ({lat:.3f}, {lon:.3f}): "
                         f"{reading.sea_temperature_c:.1f}C, {reading.salinity_psu:.1f} PSU")
        return reading

    def _get_current_hour(self, path: str, lat: float, lon: float, params: list) -> Dict:
        """Request one endpoint and return its first hourly entry"""
        now = datetime.now(timezone.utc).replace(minute=0, second=0, microsecond=0)
        try:
            response = self.session.get(
                f"{self.base_url}/{path}",
                params={
                    'lat': lat,
                    'lng': lon,
                    'params': ','.join(params),
                    'start': now.isoformat(),
                    'end': now.isoformat(),
                },
                headers={'Authorization': self.api_key},
                timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise APIError(f"Request to {path} failed: {str(e)}") from e
        except ValueError as e:
            raise APIError(f"Invalid JSON from {path}") from e

        hours = data.get('hours') if isinstance(data, dict) else None
        if not hours:
            raise APIError(f"No hourly data in {path} response")
        return hours[0]

    @staticmethod
    def _value(hour: Dict, key: str, default: Optional[float] = None) -> Optional[float]:
        """Pick the value of the most trusted source for a parameter"""
        if not isinstance(hour, dict):
            raise APIError(f"Unexpected hourly entry: {hour!r}")
        sources = hour.get(key) or {}
        if not isinstance(sources, dict):
            raise APIError(f"Unexpected {key} entry: {sources!r}")

        ordered = [sources.get(source) for source in SOURCE_PRIORITY] + list(sources.values())
        for value in ordered:
            if value is None:
                continue
            try:
                return float(value)
            except (TypeError, ValueError) as e:
                raise APIError(f"Non-numeric {key} value: {value!r}") from e
        return default

    @staticmethod
    def _get_fallback_reading(vessel_speed_knots: float, idle_hours: float,
                              days_since_clean: int) -> EnvironmentalReading:
        """Return typical tropical conditions when the API fails"""
        return EnvironmentalReading(
            sea_temperature_c=FALLBACK_SEA_TEMPERATURE,
            salinity_psu=FALLBACK_SALINITY,
            vessel_speed_knots=vessel_speed_knots,
            idle_hours=idle_hours,
            days_since_clean=days_since_clean,
        )
