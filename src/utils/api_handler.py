import random
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from src.models.biofouling import get_estimator, round_half_up
from src.models.types import EnvironmentalReading

logger = logging.getLogger(__name__)

VALID_TIMEFRAMES = ['7d', '14d', '30d', '60d', '90d']


class FleetDataSimulator:
    """Demo fleet data for the dashboard.

    All randomness comes from the injected ``rng`` so a seeded generator
    reproduces the same fleet on every run.
    """

    VESSEL_TYPES = ['Container Ship', 'Bulk Carrier', 'Tanker', 'RoRo']
    OPERATORS = ['Maersk', 'MSC', 'CMA CGM', 'COSCO']
    PORTS = [
        'Port Klang',
        'Tanjung Pelepas Port',
        'Bintulu Port',
        'Kuantan Port',
        'Penang Port',
        'Johor Port'
    ]

    PREDICTION_MODELS = [
        {
            'id': 'biofouling-v2.1',
            'name': 'Biofouling Growth Predictor',
            'type': 'biofouling',
            'version': '2.1.3',
            'status': 'active',
            'features': ['Sea Temperature', 'Salinity', 'Vessel Speed', 'Idle Time',
                         'Chlorophyll-a', 'Wind and Current'],
            'estimator': 'enhanced'
        },
        {
            'id': 'biofouling-v1.0',
            'name': 'Baseline Biofouling Predictor',
            'type': 'biofouling',
            'version': '1.0.0',
            'status': 'legacy',
            'features': ['Sea Temperature', 'Salinity', 'Vessel Speed', 'Idle Time'],
            'estimator': 'baseline'
        }
    ]

    def __init__(self, rng: Optional[random.Random] = None, now: Optional[datetime] = None):
        self.rng = rng or random.Random()
        self.now = now or datetime.now()

    def random_destination(self) -> str:
        return self.rng.choice(self.PORTS)

    def prediction_models(self) -> List[Dict[str, Any]]:
        return [dict(model) for model in self.PREDICTION_MODELS]

    def random_reading(self) -> EnvironmentalReading:
        """Plausible tropical operating conditions"""
        return EnvironmentalReading(
            sea_temperature_c=round(self.rng.uniform(22, 30), 2),
            salinity_psu=round(self.rng.uniform(31, 37), 2),
            vessel_speed_knots=round(self.rng.uniform(0, 18), 2),
            idle_hours=round(self.rng.uniform(0, 20), 2),
            days_since_clean=self.rng.randint(0, 90),
            chlorophyll_a_mg_m3=round(self.rng.uniform(0.02, 1.6), 3),
            wind_speed_mps=round(self.rng.uniform(2, 15), 2),
            current_speed_mps=round(self.rng.uniform(0.1, 1.2), 2)
        )

    def generate_fleet(self, count: int = 8) -> Dict[str, Any]:
        """Generate a demo fleet with estimator-backed fouling levels"""
        estimator = get_estimator('enhanced')
        vessels = []

        for i in range(1, count + 1):
            reading = self.random_reading()
            prediction = estimator.predict(reading)
            last_service = self.now - timedelta(days=reading.days_since_clean)

            vessels.append({
                'id': f"V{i:03d}",
                'imo': f"IMO{9000000 + i}",
                'name': f"MV Fleet Star {i}",
                'type': self.rng.choice(self.VESSEL_TYPES),
                'operator': self.rng.choice(self.OPERATORS),
                'status': self.rng.choice(['Active', 'In Port', 'Maintenance']),
                'destination': self.random_destination(),
                'reading': reading,
                'performance': {
                    'fouling_percent': prediction.fouling_percent,
                    'fouling_class': prediction.fouling_class.value,
                    'fuel_penalty_percent': prediction.fuel_penalty_percent,
                    'speed_reduction_percent': prediction.speed_reduction_percent
                },
                'maintenance': {
                    'last_service': last_service,
                    'next_service': self.now + timedelta(
                        days=max(0, prediction.next_predicted_cleaning_days or 0)
                    ),
                    'priority': 'High' if prediction.recommended_cleaning else 'Low'
                }
            })

        logger.info(f"Generated {len(vessels)} demo vessels")

        summary = {
            'total_vessels': len(vessels),
            'active_vessels': sum(1 for v in vessels if v['status'] == 'Active'),
            'in_maintenance': sum(1 for v in vessels if v['status'] == 'Maintenance'),
            'avg_fouling': round_half_up(
                sum(v['performance']['fouling_percent'] for v in vessels) / len(vessels), 1
            ) if vessels else 0.0
        }
        return {'vessels': vessels, 'summary': summary}

    def generate_predictions(self, vessel_ids: Optional[List[str]] = None,
                             timeframe: str = '30d') -> Dict[str, Any]:
        """Generate biofouling and fuel prediction series per vessel"""
        if timeframe not in VALID_TIMEFRAMES:
            raise ValueError(
                f"Invalid timeframe. Must be one of: {', '.join(VALID_TIMEFRAMES)}"
            )

        horizon = int(timeframe[:-1])
        vessel_ids = vessel_ids or ['V001', 'V002', 'V003', 'V004']
        estimator = get_estimator('enhanced')
        predictions = []

        for vessel_id in vessel_ids:
            reading = self.random_reading()
            current = estimator.predict(reading)
            base_fuel = self.rng.uniform(85, 110)  # tpd

            biofouling = []
            for days in range(7, horizon + 1, 7):
                future = estimator.predict(reading.days_later(days))
                biofouling.append({
                    'timeframe': f"{days}d",
                    'predicted': future.fouling_percent,
                    'fouling_class': future.fouling_class.value,
                    'recommendation': 'Schedule cleaning' if future.recommended_cleaning
                    else 'Monitor closely'
                })

            fuel = []
            for days in range(7, min(horizon, 30) + 1, 7):
                future = estimator.predict(reading.days_later(days))
                increase = base_fuel * future.fuel_penalty_percent / 100
                fuel.append({
                    'timeframe': f"{days}d",
                    'baseline': round(base_fuel, 1),
                    'predicted': round(base_fuel + increase, 1),
                    'increase': round(increase, 1)
                })

            predictions.append({
                'vessel_id': vessel_id,
                'vessel_name': f"MV Fleet Star {vessel_id[-1]}",
                'timestamp': self.now.isoformat(),
                'biofouling': {
                    'current': current.fouling_percent,
                    'fouling_class': current.fouling_class.value,
                    'predictions': biofouling
                },
                'fuel_consumption': {
                    'current': round(base_fuel, 1),
                    'predictions': fuel
                }
            })

        return {
            'predictions': predictions,
            'timeframe': timeframe,
            'generated_at': self.now.isoformat()
        }
