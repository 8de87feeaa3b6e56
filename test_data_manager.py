"""Unit tests for the biofouling fixture loader."""

import math

import pytest

from src.models.biofouling import predict_biofouling
from src.models.types import EnvironmentalReading, FoulingClass
from src.utils.data_manager import (
    BiofoulingDataManager,
    DataLoadError,
    calculate_environmental_score,
    calculate_speed_reduction,
    determine_vessel_status,
    format_value,
)


class TestLoadRecords:
    """Tests for CSV loading."""

    def test_loads_all_columns(self, data_manager):
        df = data_manager.load_records()
        assert len(df) == 7
        assert len(df.columns) == 34
        assert df["mmsi"].iloc[0] == "300000000"

    def test_caches_frame(self, data_manager):
        assert data_manager.load_records() is data_manager.load_records()

    def test_missing_file(self, tmp_path):
        manager = BiofoulingDataManager(tmp_path / "missing.csv")
        with pytest.raises(DataLoadError, match="not found"):
            manager.load_records()

    def test_missing_columns(self, tmp_path):
        path = tmp_path / "partial.csv"
        path.write_text("vessel_id,timestamp\nVSL_1,2024-01-01 00:00:00\n")
        with pytest.raises(DataLoadError, match="Missing columns"):
            BiofoulingDataManager(path).load_records()

    def test_records_build_readings(self, data_manager):
        record = data_manager.get_records()[0]
        reading = EnvironmentalReading.from_record(record)

        assert reading.sea_temperature_c == 23.65
        assert reading.salinity_psu == 36.51
        assert reading.vessel_speed_knots == 8.17
        assert reading.days_since_clean == 44
        assert reading.current_speed_mps == 0.94

        prediction = predict_biofouling(reading)
        assert 0.0 <= prediction.fouling_percent <= 100.0

    def test_from_record_fallbacks(self):
        reading = EnvironmentalReading.from_record({"sst_c": 24.0, "sss_psu": 35.0, "chlor_a_mg_m3": math.nan})
        assert reading.vessel_speed_knots == 10.0
        assert reading.chlorophyll_a_mg_m3 == 0.5


class TestTimeSeries:
    """Tests for vessel tracking series."""

    def test_vessel_time_series(self, data_manager):
        series = data_manager.get_vessel_time_series("VSL_2000")

        assert len(series) == 7
        assert [point["date"] for point in series] == sorted(point["date"] for point in series)
        first = series[0]
        assert first["date"] == "2024-01-01"
        assert first["fouling_percent"] == 82.49
        assert first["location"] == {"lat": 3.821248, "lon": 91.850316}
        assert first["environmental"]["chlorophyll_a"] == 0.717
        assert first["vessel"]["idle_time"] == 1.12

    def test_unknown_vessel(self, data_manager):
        assert data_manager.get_vessel_time_series("VSL_9999") == []

    def test_vessel_ids(self, data_manager):
        assert data_manager.get_vessel_ids() == ["VSL_2000"]

    def test_latest_reading(self, data_manager):
        reading = data_manager.get_latest_reading("VSL_2000")

        assert reading == EnvironmentalReading(
            sea_temperature_c=23.62,
            salinity_psu=35.5,
            vessel_speed_knots=8.36,
            idle_hours=0.26,
            days_since_clean=25,
            chlorophyll_a_mg_m3=1.029,
            wind_speed_mps=5.75,
            current_speed_mps=0.44,
        )
        assert data_manager.get_latest_reading("VSL_9999") is None

    def test_compare_with_estimator(self, data_manager):
        comparison = data_manager.compare_with_estimator()

        assert len(comparison) == 7
        assert comparison["recorded_fouling"].tolist() == [82.49, 100.0, 0.0, 4.2, 62.93, 0.0, 41.66]
        first = EnvironmentalReading.from_record(data_manager.get_records()[0])
        assert comparison["estimated_fouling"].iloc[0] == predict_biofouling(first).fouling_percent
        # freshly cleaned hulls
        assert comparison["estimated_fouling"].iloc[2] == 0.0
        assert comparison["estimated_class"].iloc[5] == "clean"

    def test_generate_time_series(self, data_manager):
        df = data_manager.generate_time_series()
        assert list(df.columns) == [
            "date", "fouling_percent", "fuel_consumption", "speed_reduction", "environmental_score"
        ]
        assert df["speed_reduction"].iloc[1] == 15.0
        assert df["environmental_score"].iloc[0] == 91


class TestFleetMetrics:
    """Tests for fleet aggregates."""

    def test_summary(self, data_manager):
        summary = data_manager.calculate_fleet_metrics()["summary"]

        assert summary["average_fouling"] == 41.61
        assert summary["average_fuel_consumption"] == 0.789
        assert summary["high_fouling_percentage"] == 43
        assert summary["cleaning_effectiveness"] == 200

    def test_trends(self, data_manager):
        trends = data_manager.calculate_fleet_metrics()["trends"]

        assert len(trends["fouling_progression"]) == 7
        assert trends["fouling_progression"][1] == {"date": "2024-01-02", "fouling": 100.0, "fuel": 1.207}
        assert [event["date"] for event in trends["cleaning_impact"]] == ["2024-02-12", "2024-06-20"]
        assert trends["cleaning_impact"][0]["after_fouling"] == 0.0

    def test_no_long_uncleaned_records(self, tmp_path, data_manager):
        df = data_manager.load_records()
        path = tmp_path / "recent.csv"
        df[df["days_since_clean"] <= 50].to_csv(path, index=False)

        summary = BiofoulingDataManager(path).calculate_fleet_metrics()["summary"]
        assert summary["cleaning_effectiveness"] is None

    def test_summarize_fleet(self, data_manager):
        fleet = data_manager.summarize_fleet()
        statuses = [v["status"] for v in fleet["vessels"]]

        assert statuses == ["Maintenance", "Maintenance", "Idle", "En Route", "Idle", "Idle", "Docked"]
        assert fleet["vessels"][0]["name"] == "Harbour 2000"
        assert fleet["vessels"][0]["fuel_penalty"] == "+0.4/h"
        assert fleet["summary"] == {
            "total_vessels": 7,
            "active_vessels": 1,
            "idle_vessels": 6,
            "avg_fuel_penalty": "+0.8/h",
            "maintenance_flags": 3,
        }


class TestHelpers:
    """Tests for scoring and formatting helpers."""

    def test_environmental_score(self):
        record = {"sea_temperature": 23.65, "salinity": 36.51, "current_speed": 0.94}
        assert calculate_environmental_score(record) == 91

    def test_environmental_score_floors_at_zero(self):
        record = {"sea_temperature": -2.0, "salinity": 90.0, "current_speed": 6.0}
        assert calculate_environmental_score(record) == 0

    def test_speed_reduction(self):
        assert calculate_speed_reduction(50.0) == 7.5

    def test_vessel_status(self):
        assert determine_vessel_status({"vessel_speed": 0.5, "fouling_class": "high"}) == "Idle"
        assert determine_vessel_status({"vessel_speed": 5.0, "fouling_class": "high"}) == "Maintenance"
        assert determine_vessel_status({"vessel_speed": 12.0, "fouling_class": "low"}) == "En Route"
        assert determine_vessel_status({"vessel_speed": 8.0, "fouling_class": "low"}) == "Docked"

    @pytest.mark.parametrize("value, unit, expected", [
        (25, "temperature", "25.0°C"),
        (35.25, "salinity", "35.3 PSU"),
        (0.125, "fuel", "0.13 tpd"),
        (12, "speed", "12.0 knots"),
        (41.66, "percentage", "41.7%"),
        (0.4219, "fuel", "0.42 tpd"),
        (5, None, "5"),
        (None, "percentage", "0"),
        (math.nan, "temperature", "0"),
        ("abc", "speed", "0"),
    ])
    def test_format_value(self, value, unit, expected):
        assert format_value(value, unit) == expected

    def test_fixture_classes_are_known(self, data_manager):
        classes = set(data_manager.load_records()["fouling_class"])
        assert classes <= {c.value for c in FoulingClass}
