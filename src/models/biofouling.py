import math
import logging
from typing import Dict, List, Optional

from src.models.types import (
    CleaningUrgency,
    EnvironmentalFactors,
    EnvironmentalReading,
    FoulingClass,
    FoulingPrediction,
    RealtimePrediction,
)

logger = logging.getLogger(__name__)

# Largest argument math.exp accepts without overflowing
MAX_EXPONENT = 709.0

# Upper bounds (inclusive) of each fouling class, in percent
FOULING_CLASS_LIMITS = [
    (10.0, FoulingClass.CLEAN),
    (30.0, FoulingClass.LOW),
    (70.0, FoulingClass.MEDIUM),
]


def round_half_up(value: float, digits: int = 2) -> float:
    """Round halves upwards, as the dashboard displays values"""
    scale = 10 ** digits
    scaled = value * scale + 0.5
    if not math.isfinite(scaled):
        return value
    return math.floor(scaled) / scale


def _round2(value: float) -> float:
    return round_half_up(value, 2)


def _round_int(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def classify_fouling(fouling_percent: float) -> FoulingClass:
    """Map a fouling percentage to its class"""
    for upper, fouling_class in FOULING_CLASS_LIMITS:
        if fouling_percent <= upper:
            return fouling_class
    return FoulingClass.HIGH


class BiofoulingEstimator:
    """Common interface of the biofouling estimators.

    An estimator maps one EnvironmentalReading to one FoulingPrediction. It keeps
    no state between calls, so a single instance can be shared freely.
    """

    name = "abstract"
    factor_names: tuple = ()  # EnvironmentalFactors fields the growth rate uses
    base_growth_rate = 0.0  # % per day
    cleaning_threshold = 0.0  # % fouling

    def predict(self, reading: EnvironmentalReading) -> FoulingPrediction:
        raise NotImplementedError

    def used_factors(self, prediction: FoulingPrediction) -> Dict[str, float]:
        """The prediction's factors that this estimator applies, in order"""
        factors = prediction.environmental_factors
        return {name: getattr(factors, name) for name in self.factor_names}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"


class EnhancedBiofoulingEstimator(BiofoulingEstimator):
    """Growth model calibrated against the demo vessel records.

    Six multiplicative factors scale a fixed baseline growth rate. Past day 30
    growth accelerates by 20%, and the accumulated fouling is clamped to 0-100%.
    """

    name = "enhanced"
    factor_names = ("temperature", "salinity", "speed", "idle", "nutrients", "environmental")
    base_growth_rate = 3.2
    cleaning_threshold = 75.0
    accelerated_after_days = 30
    acceleration = 1.2
    max_fuel_penalty = 35.0  # % at full fouling
    fuel_penalty_exponent = 1.3
    max_speed_reduction = 18.0  # % before the curvature term
    forecast_cleaning_level = 85.0

    def predict(self, reading: EnvironmentalReading) -> FoulingPrediction:
        factors = self.calculate_factors(reading)
        multiplier = (factors.temperature * factors.salinity * factors.speed *
                      factors.idle * factors.nutrients * factors.environmental)
        daily_growth = self.base_growth_rate * multiplier

        fouling = _clamp(self._accumulate(reading.days_since_clean, daily_growth), 0.0, 100.0)
        fouling_percent = _round2(fouling)

        fuel_penalty = (fouling / 100) ** self.fuel_penalty_exponent * self.max_fuel_penalty
        speed_reduction = (fouling / 100) * self.max_speed_reduction * (1 + fouling / 500)
        maintenance_cost = 1 + (fouling / 100) * 2.5
        next_cleaning = math.ceil(
            (self.forecast_cleaning_level - fouling) / max(0.1, daily_growth)
        )

        logger.debug(f"{self.name} prediction: fouling={fouling_percent}% daily={daily_growth:.4f}")

        return FoulingPrediction(
            fouling_percent=fouling_percent,
            fouling_class=classify_fouling(fouling_percent),
            fuel_penalty_percent=_round2(fuel_penalty),
            speed_reduction_percent=_round2(speed_reduction),
            daily_growth_rate_percent=_round2(daily_growth),
            recommended_cleaning=fouling_percent > self.cleaning_threshold,
            environmental_factors=EnvironmentalFactors(
                temperature=_round2(factors.temperature),
                salinity=_round2(factors.salinity),
                speed=_round2(factors.speed),
                idle=_round2(factors.idle),
                nutrients=_round2(factors.nutrients),
                environmental=_round2(factors.environmental),
            ),
            variant=self.name,
            maintenance_cost_multiplier=_round2(maintenance_cost),
            next_predicted_cleaning_days=next_cleaning,
        )

    @staticmethod
    def calculate_factors(reading: EnvironmentalReading) -> EnvironmentalFactors:
        """Calculate the unrounded growth factors for a reading"""
        temperature = reading.sea_temperature_c
        # Growth peaks around 25-28 C and is damped above 30 C
        temp_factor = _clamp(
            (temperature - 20) / 8 * (1 if temperature < 30 else 0.8), 0.0, 1.2
        )
        salinity_factor = _clamp(1 - abs(reading.salinity_psu - 35) / 10, 0.2, 1.0)
        speed_factor = max(0.1, math.exp(min(MAX_EXPONENT, -reading.vessel_speed_knots / 15)))
        idle_factor = 1 + (reading.idle_hours / 24) * 0.8
        nutrient_factor = min(1.3, 1 + reading.chlorophyll_a_mg_m3)
        stress_factor = max(0.7, 1 - (reading.wind_speed_mps + reading.current_speed_mps) / 20)

        return EnvironmentalFactors(
            temperature=temp_factor,
            salinity=salinity_factor,
            speed=speed_factor,
            idle=idle_factor,
            nutrients=nutrient_factor,
            environmental=stress_factor,
        )

    def _accumulate(self, days_since_clean: int, daily_growth: float) -> float:
        """Accumulate fouling over the days since the last cleaning"""
        if days_since_clean <= self.accelerated_after_days:
            return days_since_clean * daily_growth
        return (self.accelerated_after_days * daily_growth +
                (days_since_clean - self.accelerated_after_days) * daily_growth * self.acceleration)


class BaselineBiofoulingEstimator(BiofoulingEstimator):
    """Original linear growth model, kept as a named variant for comparison."""

    name = "baseline"
    factor_names = ("temperature", "salinity", "speed", "idle")
    base_growth_rate = 2.0
    cleaning_threshold = 80.0
    max_fuel_penalty = 30.0
    max_speed_reduction = 15.0
    base_fuel_consumption = 2.0  # tpd
    forecast_cleaning_level = 90.0

    def predict(self, reading: EnvironmentalReading) -> FoulingPrediction:
        factors = self.calculate_factors(reading)
        daily_growth = self.base_growth_rate * (
            factors.temperature * factors.salinity * factors.speed * factors.idle
        )

        fouling = _clamp(reading.days_since_clean * daily_growth, 0.0, 100.0)
        fouling_percent = _round2(fouling)

        fuel_penalty = (fouling / 100) * self.max_fuel_penalty
        fuel_consumption = self.base_fuel_consumption * (1 + fuel_penalty / 100)
        speed_reduction = (fouling / 100) * self.max_speed_reduction

        next_cleaning: Optional[int] = None
        if daily_growth > 0:
            next_cleaning = math.ceil((self.forecast_cleaning_level - fouling) / daily_growth)

        return FoulingPrediction(
            fouling_percent=fouling_percent,
            fouling_class=classify_fouling(fouling_percent),
            fuel_penalty_percent=_round2(fuel_penalty),
            speed_reduction_percent=_round2(speed_reduction),
            daily_growth_rate_percent=_round2(daily_growth),
            recommended_cleaning=fouling_percent > self.cleaning_threshold,
            environmental_factors=EnvironmentalFactors(
                temperature=_round2(factors.temperature),
                salinity=_round2(factors.salinity),
                speed=_round2(factors.speed),
                idle=_round2(factors.idle),
            ),
            variant=self.name,
            next_predicted_cleaning_days=next_cleaning,
            fuel_consumption_tpd=_round2(fuel_consumption),
        )

    @staticmethod
    def calculate_factors(reading: EnvironmentalReading) -> EnvironmentalFactors:
        return EnvironmentalFactors(
            temperature=max(0.0, (reading.sea_temperature_c - 20) / 10),
            salinity=_clamp((reading.salinity_psu - 30) / 10, 0.0, 1.0),
            speed=max(0.1, 1 - reading.vessel_speed_knots / 20),
            idle=1 + (reading.idle_hours / 24) * 0.5,
        )


ESTIMATORS: Dict[str, BiofoulingEstimator] = {
    EnhancedBiofoulingEstimator.name: EnhancedBiofoulingEstimator(),
    BaselineBiofoulingEstimator.name: BaselineBiofoulingEstimator(),
}


def available_estimators() -> List[str]:
    return list(ESTIMATORS)


def get_estimator(name: str = "enhanced") -> BiofoulingEstimator:
    """Look up an estimator variant by name"""
    try:
        return ESTIMATORS[name]
    except KeyError:
        raise ValueError(
            f"Unknown estimator '{name}'. Must be one of: {', '.join(ESTIMATORS)}"
        ) from None


def predict_biofouling(reading: EnvironmentalReading) -> FoulingPrediction:
    """Predict hull fouling with the canonical (enhanced) estimator"""
    return ESTIMATORS["enhanced"].predict(reading)


def _cleaning_urgency(fouling_percent: float) -> CleaningUrgency:
    if fouling_percent > 75:
        return CleaningUrgency.IMMEDIATE
    elif fouling_percent > 50:
        return CleaningUrgency.WITHIN_WEEK
    return CleaningUrgency.MONITOR


def generate_realtime_prediction(reading: EnvironmentalReading,
                                 history: Optional[List[Dict]] = None,
                                 estimator: Optional[BiofoulingEstimator] = None) -> RealtimePrediction:
    """Current prediction plus 7 and 30 day forecasts and recommendations"""
    estimator = estimator or ESTIMATORS["enhanced"]
    current = estimator.predict(reading)

    return RealtimePrediction(
        current=current,
        next_week=estimator.predict(reading.days_later(7)),
        next_month=estimator.predict(reading.days_later(30)),
        cleaning_urgency=_cleaning_urgency(current.fouling_percent),
        estimated_cost_saving_usd=_round_int(current.fuel_penalty_percent * 1000),
        environmental_impact_kg_co2=_round_int(current.fuel_penalty_percent * 2.1),
        historical=history[-1] if history else None,
    )
