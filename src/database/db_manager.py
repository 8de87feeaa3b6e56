import json
import sqlite3
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from src.models.types import EnvironmentalReading, FoulingPrediction
from src.utils.config import DB_PATH

SCHEMA_FILE = Path(__file__).with_name('schema.sql')


class DatabaseManager:
    def __init__(self, db_path: str = DB_PATH):
        self.db_path = str(db_path)
        self.init_database()

    def init_database(self):
        with sqlite3.connect(self.db_path) as conn:
            with open(SCHEMA_FILE, encoding='utf-8') as f:
                conn.executescript(f.read())

    def save_prediction(self, reading: EnvironmentalReading, prediction: FoulingPrediction,
                        vessel_id: Optional[str] = None) -> int:
        """Store a prediction together with the reading it was made from"""
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO predictions (
                    vessel_id, variant,
                    sea_temperature_c, salinity_psu, vessel_speed_knots, idle_hours,
                    days_since_clean, chlorophyll_a_mg_m3, wind_speed_mps, current_speed_mps,
                    fouling_percent, fouling_class, fuel_penalty_percent,
                    speed_reduction_percent, daily_growth_rate_percent,
                    recommended_cleaning, environmental_factors, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """, (
                vessel_id,
                prediction.variant,
                reading.sea_temperature_c,
                reading.salinity_psu,
                reading.vessel_speed_knots,
                reading.idle_hours,
                reading.days_since_clean,
                reading.chlorophyll_a_mg_m3,
                reading.wind_speed_mps,
                reading.current_speed_mps,
                prediction.fouling_percent,
                prediction.fouling_class.value,
                prediction.fuel_penalty_percent,
                prediction.speed_reduction_percent,
                prediction.daily_growth_rate_percent,
                int(prediction.recommended_cleaning),
                json.dumps(asdict(prediction.environmental_factors)),
                datetime.now().isoformat(sep=' ')
            ))
            return cursor.lastrowid

    def get_prediction_history(self, vessel_id: Optional[str] = None, limit: int = 50) -> List[Dict]:
        """Stored predictions, newest first"""
        query = "SELECT * FROM predictions"
        params: list = []
        if vessel_id is not None:
            query += " WHERE vessel_id = ?"
            params.append(vessel_id)
        query += " ORDER BY created_at DESC, id DESC LIMIT ?"
        params.append(limit)

        with sqlite3.connect(self.db_path) as conn:
            conn.row_factory = sqlite3.Row
            cursor = conn.cursor()
            cursor.execute(query, params)
            rows = [dict(row) for row in cursor.fetchall()]

        for row in rows:
            row['recommended_cleaning'] = bool(row['recommended_cleaning'])
            if row['environmental_factors']:
                row['environmental_factors'] = json.loads(row['environmental_factors'])
        return rows

    def clear_history(self) -> int:
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM predictions")
            return cursor.rowcount
