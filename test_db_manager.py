"""Unit tests for prediction history storage."""

import pytest

from src.database.db_manager import DatabaseManager
from src.models.biofouling import get_estimator, predict_biofouling


@pytest.fixture
def db(tmp_path):
    return DatabaseManager(tmp_path / "seawise.db")


class TestPredictionHistory:
    """Tests for saving and listing predictions."""

    def test_empty(self, db):
        assert db.get_prediction_history() == []

    def test_save_and_read(self, db, reference_reading):
        prediction = predict_biofouling(reference_reading)
        row_id = db.save_prediction(reference_reading, prediction, vessel_id="VSL_2000")

        history = db.get_prediction_history()
        assert len(history) == 1
        row = history[0]
        assert row["id"] == row_id
        assert row["vessel_id"] == "VSL_2000"
        assert row["variant"] == "enhanced"
        assert row["fouling_percent"] == 25.41
        assert row["fouling_class"] == "low"
        assert row["recommended_cleaning"] is False
        assert row["days_since_clean"] == 30
        assert row["environmental_factors"]["nutrients"] == 1.3

    def test_newest_first_and_limit(self, db, reference_reading, favourable_reading):
        db.save_prediction(reference_reading, predict_biofouling(reference_reading))
        db.save_prediction(favourable_reading, predict_biofouling(favourable_reading))
        baseline = get_estimator("baseline").predict(reference_reading)
        db.save_prediction(reference_reading, baseline)

        history = db.get_prediction_history()
        assert [row["variant"] for row in history] == ["baseline", "enhanced", "enhanced"]
        assert history[1]["recommended_cleaning"] is True

        assert len(db.get_prediction_history(limit=2)) == 2

    def test_filter_by_vessel(self, db, reference_reading):
        prediction = predict_biofouling(reference_reading)
        db.save_prediction(reference_reading, prediction, vessel_id="VSL_2000")
        db.save_prediction(reference_reading, prediction, vessel_id="VSL_2001")
        db.save_prediction(reference_reading, prediction)

        history = db.get_prediction_history(vessel_id="VSL_2001")
        assert [row["vessel_id"] for row in history] == ["VSL_2001"]

    def test_clear_history(self, db, reference_reading):
        prediction = predict_biofouling(reference_reading)
        db.save_prediction(reference_reading, prediction)
        db.save_prediction(reference_reading, prediction)

        assert db.clear_history() == 2
        assert db.get_prediction_history() == []

    def test_schema_is_idempotent(self, tmp_path, reference_reading):
        path = tmp_path / "seawise.db"
        DatabaseManager(path).save_prediction(reference_reading, predict_biofouling(reference_reading))
        assert len(DatabaseManager(path).get_prediction_history()) == 1
