import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from src.models.biofouling import BiofoulingEstimator, get_estimator, round_half_up
from src.models.types import EnvironmentalReading
from src.utils.config import DATA_FILE

logger = logging.getLogger(__name__)


class DataLoadError(Exception):
    """Raised when the biofouling fixture cannot be read"""
    pass


REQUIRED_COLUMNS = [
    "vessel_id", "timestamp", "date", "lat", "lon",
    "vessel_speed", "idle_time", "sea_temperature", "salinity",
    "chlor_a_mg_m3", "wind_speed_mps", "current_speed",
    "days_since_clean", "fouling_percent", "fouling_class", "fuel_consumption_tpd",
]


def calculate_environmental_score(record: Dict[str, Any]) -> int:
    """Score how favourable conditions are for growth (0-100)"""
    temp_score = max(0.0, 100 - abs(record["sea_temperature"] - 25) * 4)
    salinity_score = max(0.0, 100 - abs(record["salinity"] - 35) * 2)
    current_score = max(0.0, 100 - record["current_speed"] * 20)

    return int(round_half_up((temp_score + salinity_score + current_score) / 3, 0))


def calculate_speed_reduction(fouling_percent: float) -> float:
    """Historical speed loss, up to 15% at full fouling"""
    return round_half_up(fouling_percent / 100 * 15)


def determine_vessel_status(record: Dict[str, Any]) -> str:
    if record["vessel_speed"] < 1:
        return "Idle"
    if record["fouling_class"] == "high":
        return "Maintenance"
    if record["vessel_speed"] > 10:
        return "En Route"
    return "Docked"


def format_value(value: Any, unit: Optional[str] = None) -> str:
    """Format a number with its display unit"""
    if value is None:
        return '0'
    try:
        number = float(value)
    except (TypeError, ValueError):
        return '0'
    if number != number:  # NaN
        return '0'

    if unit == 'temperature':
        return f"{round_half_up(number, 1):.1f}°C"
    elif unit == 'salinity':
        return f"{round_half_up(number, 1):.1f} PSU"
    elif unit == 'speed':
        return f"{round_half_up(number, 1):.1f} knots"
    elif unit == 'percentage':
        return f"{round_half_up(number, 1):.1f}%"
    elif unit == 'fuel':
        return f"{round_half_up(number, 2):.2f} tpd"
    return str(value)


class BiofoulingDataManager:
    def __init__(self, csv_path: Optional[Path] = None):
        self.csv_path = Path(csv_path) if csv_path else DATA_FILE
        self._records: Optional[pd.DataFrame] = None

    def load_records(self, reload: bool = False) -> pd.DataFrame:
        """Load the vessel biofouling records from CSV"""
        if self._records is not None and not reload:
            return self._records

        if not self.csv_path.exists():
            raise DataLoadError(f"Biofouling data file not found: {self.csv_path}")

        try:
            df = pd.read_csv(self.csv_path, dtype={"mmsi": str, "imo": str})
        except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            logger.error(f"Failed to parse {self.csv_path}: {str(e)}")
            raise DataLoadError(f"Invalid biofouling data file: {self.csv_path}") from e

        missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
        if missing:
            raise DataLoadError(f"Missing columns in {self.csv_path}: {', '.join(missing)}")

        df["timestamp"] = pd.to_datetime(df["timestamp"])
        logger.info(f"Loaded {len(df)} biofouling records from {self.csv_path}")

        self._records = df
        return df

    def get_records(self) -> List[Dict[str, Any]]:
        """Records as plain dicts, timestamps as strings"""
        df = self.load_records().copy()
        df["timestamp"] = df["timestamp"].dt.strftime("%Y-%m-%d %H:%M:%S")
        return df.to_dict(orient="records")

    def get_vessel_ids(self) -> List[str]:
        return sorted(self.load_records()["vessel_id"].unique().tolist())

    def get_vessel_time_series(self, vessel_id: str = "VSL_2000") -> List[Dict[str, Any]]:
        """Chronological tracking data for one vessel"""
        df = self.load_records()
        vessel_df = df[df["vessel_id"] == vessel_id].sort_values("timestamp")

        return [
            {
                "date": row["date"],
                "timestamp": row["timestamp"].strftime("%Y-%m-%d %H:%M:%S"),
                "fouling_percent": float(row["fouling_percent"]),
                "fouling_class": row["fouling_class"],
                "fuel_consumption": float(row["fuel_consumption_tpd"]),
                "days_since_clean": int(row["days_since_clean"]),
                "location": {"lat": float(row["lat"]), "lon": float(row["lon"])},
                "environmental": {
                    "sea_temperature": float(row["sea_temperature"]),
                    "salinity": float(row["salinity"]),
                    "wind_speed": float(row["wind_speed_mps"]),
                    "current_speed": float(row["current_speed"]),
                    "chlorophyll_a": float(row["chlor_a_mg_m3"]),
                },
                "vessel": {
                    "speed": float(row["vessel_speed"]),
                    "idle_time": float(row["idle_time"]),
                },
            }
            for _, row in vessel_df.iterrows()
        ]

    def get_latest_reading(self, vessel_id: str) -> Optional[EnvironmentalReading]:
        """Reading built from the vessel's most recent record"""
        records = [r for r in self.get_records() if r["vessel_id"] == vessel_id]
        if not records:
            return None
        return EnvironmentalReading.from_record(max(records, key=lambda r: r["timestamp"]))

    def compare_with_estimator(self, estimator: Optional[BiofoulingEstimator] = None) -> pd.DataFrame:
        """Recorded fouling next to the estimate for the same conditions"""
        estimator = estimator or get_estimator()
        rows = []
        for record in sorted(self.get_records(), key=lambda r: r["timestamp"]):
            prediction = estimator.predict(EnvironmentalReading.from_record(record))
            rows.append({
                "date": record["date"],
                "vessel_id": record["vessel_id"],
                "recorded_fouling": record["fouling_percent"],
                "estimated_fouling": prediction.fouling_percent,
                "recorded_class": record["fouling_class"],
                "estimated_class": prediction.fouling_class.value,
            })
        return pd.DataFrame(rows)

    def calculate_fleet_metrics(self, vessel_id: str = "VSL_2000") -> Dict[str, Any]:
        """Fleet averages, fouling trend and cleaning impact"""
        df = self.load_records()
        total = len(df)
        if total == 0:
            raise DataLoadError("No biofouling records available")

        cleaning_events = df[df["days_since_clean"] == 0].sort_values("timestamp")
        pre_cleaning = df[df["days_since_clean"] > 50]

        # No long-uncleaned records means there is nothing to compare against
        effectiveness = None
        if len(pre_cleaning):
            effectiveness = int(round_half_up(len(cleaning_events) / len(pre_cleaning) * 100, 0))

        return {
            "summary": {
                "average_fouling": round_half_up(df["fouling_percent"].mean()),
                "average_fuel_consumption": round_half_up(df["fuel_consumption_tpd"].mean(), 3),
                "high_fouling_percentage": int(round_half_up(
                    (df["fouling_class"] == "high").sum() / total * 100, 0
                )),
                "cleaning_effectiveness": effectiveness,
            },
            "trends": {
                "fouling_progression": [
                    {
                        "date": record["date"],
                        "fouling": record["fouling_percent"],
                        "fuel": record["fuel_consumption"],
                    }
                    for record in self.get_vessel_time_series(vessel_id)
                ],
                "cleaning_impact": [
                    {
                        "date": row["date"],
                        "before_fouling": 100.0,  # assumed fully fouled before cleaning
                        "after_fouling": float(row["fouling_percent"]),
                    }
                    for _, row in cleaning_events.iterrows()
                ],
            },
        }

    def generate_time_series(self) -> pd.DataFrame:
        """Chart-ready time series of fouling, fuel and conditions"""
        df = self.load_records().sort_values("timestamp")
        records = df.to_dict(orient="records")

        return pd.DataFrame([
            {
                "date": record["date"],
                "fouling_percent": record["fouling_percent"],
                "fuel_consumption": record["fuel_consumption_tpd"],
                "speed_reduction": calculate_speed_reduction(record["fouling_percent"]),
                "environmental_score": calculate_environmental_score(record),
            }
            for record in records
        ])

    def summarize_fleet(self) -> Dict[str, Any]:
        """Per-record vessel cards plus fleet-wide counts"""
        vessels = []
        for record in self.load_records().to_dict(orient="records"):
            vessels.append({
                "id": record["vessel_id"],
                "name": f"Harbour {record['vessel_id'].split('_')[-1]}",
                "date": record["date"],
                "status": determine_vessel_status(record),
                "fouling_percent": record["fouling_percent"],
                "fouling_class": record["fouling_class"],
                "fuel_penalty": f"+{record['fuel_consumption_tpd']:.1f}/h",
                "days_since_clean": int(record["days_since_clean"]),
                "location": (record["lat"], record["lon"]),
                "environmental_data": {
                    "sea_temperature": record["sea_temperature"],
                    "salinity": record["salinity"],
                    "wind_speed": record["wind_speed_mps"],
                    "current_speed": record["current_speed"],
                },
            })

        total = len(vessels)
        active = sum(1 for v in vessels if v["status"] == "En Route")
        avg_fuel = self.load_records()["fuel_consumption_tpd"].mean() if total else 0.0

        return {
            "vessels": vessels,
            "summary": {
                "total_vessels": total,
                "active_vessels": active,
                "idle_vessels": total - active,
                "avg_fuel_penalty": f"+{avg_fuel:.1f}/h",
                "maintenance_flags": sum(1 for v in vessels if v["fouling_class"] == "high"),
            },
        }
