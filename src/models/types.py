from enum import Enum
from dataclasses import dataclass, asdict, replace
from typing import Any, Dict, Mapping, Optional

# Collaborator fallbacks for the optional reading fields
DEFAULT_VESSEL_SPEED = 10.0  # knots
DEFAULT_IDLE_HOURS = 0.0
DEFAULT_DAYS_SINCE_CLEAN = 0
DEFAULT_CHLOROPHYLL_A = 0.5  # mg/m3
DEFAULT_WIND_SPEED = 5.0  # m/s
DEFAULT_CURRENT_SPEED = 0.5  # m/s


class FoulingClass(Enum):
    CLEAN = "clean"  # <= 10%
    LOW = "low"  # (10, 30]
    MEDIUM = "medium"  # (30, 70]
    HIGH = "high"  # > 70%


class CleaningUrgency(Enum):
    IMMEDIATE = "immediate"
    WITHIN_WEEK = "within_week"
    MONITOR = "monitor"


@dataclass(frozen=True)
class EnvironmentalReading:
    sea_temperature_c: float
    salinity_psu: float
    vessel_speed_knots: float = DEFAULT_VESSEL_SPEED
    idle_hours: float = DEFAULT_IDLE_HOURS  # hours since last underway
    days_since_clean: int = DEFAULT_DAYS_SINCE_CLEAN
    chlorophyll_a_mg_m3: float = DEFAULT_CHLOROPHYLL_A  # nutrient proxy
    wind_speed_mps: float = DEFAULT_WIND_SPEED
    current_speed_mps: float = DEFAULT_CURRENT_SPEED

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "EnvironmentalReading":
        """Build a reading from a row of the demo biofouling CSV"""
        def pick(key: str, default):
            value = record.get(key)
            if value is None or value != value:  # missing or NaN
                return default
            return value

        return cls(
            sea_temperature_c=float(record["sst_c"]),
            salinity_psu=float(record["sss_psu"]),
            vessel_speed_knots=float(pick("mean_speed_knots", DEFAULT_VESSEL_SPEED)),
            idle_hours=float(pick("idle_hours", DEFAULT_IDLE_HOURS)),
            days_since_clean=int(pick("days_since_clean", DEFAULT_DAYS_SINCE_CLEAN)),
            chlorophyll_a_mg_m3=float(pick("chlor_a_mg_m3", DEFAULT_CHLOROPHYLL_A)),
            wind_speed_mps=float(pick("wind_speed_mps", DEFAULT_WIND_SPEED)),
            current_speed_mps=float(pick("curr_speed_mps", DEFAULT_CURRENT_SPEED)),
        )

    def days_later(self, days: int) -> "EnvironmentalReading":
        """Same conditions, `days` further from the last cleaning"""
        return replace(self, days_since_clean=self.days_since_clean + days)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class EnvironmentalFactors:
    """Intermediate growth multipliers, kept for display only"""
    temperature: float
    salinity: float
    speed: float
    idle: float
    nutrients: float = 1.0
    environmental: float = 1.0


@dataclass(frozen=True)
class FoulingPrediction:
    fouling_percent: float
    fouling_class: FoulingClass
    fuel_penalty_percent: float
    speed_reduction_percent: float
    daily_growth_rate_percent: float
    recommended_cleaning: bool
    environmental_factors: EnvironmentalFactors
    variant: str = "enhanced"
    maintenance_cost_multiplier: Optional[float] = None
    next_predicted_cleaning_days: Optional[int] = None
    fuel_consumption_tpd: Optional[float] = None  # baseline variant only

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["fouling_class"] = self.fouling_class.value
        return data


@dataclass(frozen=True)
class RealtimePrediction:
    current: FoulingPrediction
    next_week: FoulingPrediction
    next_month: FoulingPrediction
    cleaning_urgency: CleaningUrgency
    estimated_cost_saving_usd: int  # per day
    environmental_impact_kg_co2: int  # per day
    historical: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current": self.current.to_dict(),
            "historical": self.historical,
            "forecast": {
                "next_week": self.next_week.to_dict(),
                "next_month": self.next_month.to_dict(),
            },
            "recommendations": {
                "cleaning_urgency": self.cleaning_urgency.value,
                "estimated_cost_saving_usd": self.estimated_cost_saving_usd,
                "environmental_impact_kg_co2": self.environmental_impact_kg_co2,
            },
        }
