import streamlit as st
import pandas as pd
from typing import Dict, List, Optional

from src.database.db_manager import DatabaseManager
from src.models.biofouling import (
    BiofoulingEstimator,
    available_estimators,
    generate_realtime_prediction,
    get_estimator,
)
from src.models.types import EnvironmentalReading, FoulingPrediction
from src.utils.data_manager import BiofoulingDataManager, DataLoadError, format_value
from src.utils.weather_api import MarineConditionsAPI
from src.utils.validation import (
    ENVIRONMENTAL_PRESETS,
    INPUT_RANGES,
    InvalidReadingError,
    apply_preset,
    reading_from_form,
)

DEFAULT_FORM = {
    "sea_temperature_c": 25.0,
    "salinity_psu": 35.0,
    "vessel_speed_knots": 12.0,
    "idle_hours": 0.0,
    "days_since_clean": 30,
    "chlorophyll_a_mg_m3": 0.5,
    "wind_speed_mps": 5.0,
    "current_speed_mps": 0.5,
}

STEPS = {
    "days_since_clean": 1,
    "chlorophyll_a_mg_m3": 0.01,
    "current_speed_mps": 0.01,
}

CLASS_BADGES = {
    "clean": "🟢",
    "low": "🟡",
    "medium": "🟠",
    "high": "🔴"
}

FACTOR_LABELS = {
    "temperature": "Temperature",
    "salinity": "Salinity",
    "speed": "Speed",
    "idle": "Idle",
    "nutrients": "Nutrients",
    "environmental": "Wind/Current",
}

NO_VESSEL = "None"


class BiofoulingPredictorPage:
    def __init__(self, db: DatabaseManager, data: Optional[BiofoulingDataManager] = None,
                 conditions_api: Optional[MarineConditionsAPI] = None):
        self.db = db
        self.data = data or BiofoulingDataManager()
        self.conditions_api = conditions_api or MarineConditionsAPI()

    def show(self):
        st.title("Biofouling Growth Predictor")

        tab1, tab2 = st.tabs([
            "New Prediction",
            "Prediction History"
        ])

        with tab1:
            self._show_new_prediction()

        with tab2:
            self._show_prediction_history()

    @staticmethod
    def _set_inputs(values: Dict, overwrite: bool = False):
        """Seed the number inputs' widget state"""
        for key, value in values.items():
            if key not in INPUT_RANGES:
                continue
            state_key = f"input_{key}"
            if overwrite or state_key not in st.session_state:
                st.session_state[state_key] = int(value) if key == "days_since_clean" else float(value)

    @staticmethod
    def _current_inputs() -> Dict:
        return {key: st.session_state[f"input_{key}"] for key in INPUT_RANGES}

    @staticmethod
    def _form_values(reading: EnvironmentalReading) -> Dict:
        # Recorded and fetched values can fall outside the form ranges
        values = reading.to_dict()
        for key, (_, _, low, high, _) in INPUT_RANGES.items():
            values[key] = min(high, max(low, values[key]))
        return values

    def _show_new_prediction(self):
        self._set_inputs(DEFAULT_FORM)

        vessel_id = self._show_vessel_selector()

        st.subheader("Quick Environmental Presets")
        preset_cols = st.columns(len(ENVIRONMENTAL_PRESETS) + 1)
        for col, (key, preset) in zip(preset_cols, ENVIRONMENTAL_PRESETS.items()):
            with col:
                if st.button(preset["label"], key=f"preset_{key}"):
                    self._set_inputs(apply_preset(self._current_inputs(), key), overwrite=True)
        with preset_cols[-1]:
            if st.button("Reset", key="preset_reset"):
                self._set_inputs(DEFAULT_FORM, overwrite=True)

        self._show_live_conditions()

        col1, col2 = st.columns(2)
        values = {}
        for index, (key, (label, unit, low, high, _)) in enumerate(INPUT_RANGES.items()):
            with (col1 if index % 2 == 0 else col2):
                if key == "days_since_clean":
                    values[key] = st.number_input(
                        f"{label} ({unit})", min_value=int(low), max_value=int(high),
                        step=1, key=f"input_{key}"
                    )
                else:
                    values[key] = st.number_input(
                        f"{label} ({unit})", min_value=float(low), max_value=float(high),
                        step=STEPS.get(key, 0.1), key=f"input_{key}"
                    )

        variant = st.radio("Estimator", available_estimators(), horizontal=True)

        try:
            reading = reading_from_form(values)
        except InvalidReadingError as e:
            for message in e.errors.values():
                st.error(message)
            return

        estimator = get_estimator(variant)
        realtime = generate_realtime_prediction(
            reading, history=self._vessel_history(vessel_id), estimator=estimator
        )
        prediction = realtime.current

        if prediction.recommended_cleaning:
            st.warning(
                f"⚠️ Hull cleaning is recommended. Current fouling level: "
                f"{prediction.fouling_percent}%. Expected fuel penalty: "
                f"{prediction.fuel_penalty_percent}%"
            )

        self._display_prediction(prediction, estimator)

        if realtime.historical:
            last = realtime.historical
            st.caption(
                f"Last record for {vessel_id} ({last['date']}): "
                f"{format_value(last['fouling_percent'], 'percentage')} fouling "
                f"({last['fouling_class']}), {last['days_since_clean']} days since cleaning"
            )

        st.subheader("Forecast")
        forecast_df = pd.DataFrame([
            {"Horizon": "Now", **self._forecast_row(realtime.current)},
            {"Horizon": "+7 days", **self._forecast_row(realtime.next_week)},
            {"Horizon": "+30 days", **self._forecast_row(realtime.next_month)},
        ])
        st.dataframe(forecast_df, hide_index=True)
        st.info(
            f"Cleaning urgency: {realtime.cleaning_urgency.value.replace('_', ' ')} · "
            f"Potential saving: ${realtime.estimated_cost_saving_usd:,}/day · "
            f"Avoidable emissions: {realtime.environmental_impact_kg_co2} kg CO₂/day"
        )

        if st.button("Save Prediction"):
            try:
                row_id = self.db.save_prediction(reading, prediction, vessel_id=vessel_id)
                st.success(f"Prediction #{row_id} saved")
            except Exception as e:
                st.error(f"Error saving prediction: {str(e)}")

    def _show_vessel_selector(self) -> Optional[str]:
        """Optionally tie the prediction to a recorded vessel"""
        try:
            vessel_ids = self.data.get_vessel_ids()
        except DataLoadError as e:
            st.warning(f"Recorded vessels unavailable: {str(e)}")
            return None

        col1, col2 = st.columns([2, 1])
        with col1:
            selected = st.selectbox("Vessel", [NO_VESSEL] + vessel_ids)
        if selected == NO_VESSEL:
            return None

        with col2:
            if st.button("Load Latest Record"):
                reading = self.data.get_latest_reading(selected)
                if reading is not None:
                    self._set_inputs(self._form_values(reading), overwrite=True)
        return selected

    def _vessel_history(self, vessel_id: Optional[str]) -> Optional[List[Dict]]:
        if vessel_id is None:
            return None
        return self.data.get_vessel_time_series(vessel_id)

    def _show_live_conditions(self):
        """Fill the environmental inputs from the marine conditions API"""
        with st.expander("Live Conditions"):
            col1, col2 = st.columns(2)
            with col1:
                lat = st.number_input("Latitude", min_value=-90.0, max_value=90.0, value=3.0)
            with col2:
                lon = st.number_input("Longitude", min_value=-180.0, max_value=180.0, value=101.3)

            if st.button("Fetch Conditions"):
                current = self._current_inputs()
                try:
                    reading = self.conditions_api.get_conditions(
                        lat, lon,
                        vessel_speed_knots=current["vessel_speed_knots"],
                        idle_hours=current["idle_hours"],
                        days_since_clean=current["days_since_clean"]
                    )
                except Exception as e:
                    st.error(f"Error fetching marine conditions: {str(e)}")
                    return

                self._set_inputs(self._form_values(reading), overwrite=True)
                st.caption(f"Conditions at ({lat:.2f}, {lon:.2f}): "
                           f"{format_value(reading.sea_temperature_c, 'temperature')}, "
                           f"{format_value(reading.salinity_psu, 'salinity')}")

    @staticmethod
    def _forecast_row(prediction: FoulingPrediction) -> Dict:
        return {
            "Fouling": format_value(prediction.fouling_percent, "percentage"),
            "Class": prediction.fouling_class.value,
            "Fuel Penalty": format_value(prediction.fuel_penalty_percent, "percentage"),
            "Cleaning": "Yes" if prediction.recommended_cleaning else "No",
        }

    def _display_prediction(self, prediction: FoulingPrediction, estimator: BiofoulingEstimator):
        """Display prediction results"""
        st.subheader("Prediction")

        badge = CLASS_BADGES.get(prediction.fouling_class.value, "⚪")
        col1, col2, col3 = st.columns(3)
        with col1:
            st.metric("Fouling Level", f"{prediction.fouling_percent}%")
            st.write(f"{badge} {prediction.fouling_class.value.upper()}")
        with col2:
            st.metric("Fuel Penalty", f"+{prediction.fuel_penalty_percent}%")
            st.metric("Speed Reduction", f"-{prediction.speed_reduction_percent}%")
        with col3:
            st.metric("Daily Growth", f"{prediction.daily_growth_rate_percent}%/day")
            if prediction.next_predicted_cleaning_days is not None:
                st.metric("Days to Cleaning", max(0, prediction.next_predicted_cleaning_days))

        st.progress(max(0.0, min(1.0, prediction.fouling_percent / 100)))

        factors = estimator.used_factors(prediction)
        with st.expander("Environmental factors"):
            st.dataframe(pd.DataFrame({
                "Factor": [FACTOR_LABELS[name] for name in factors],
                "Multiplier": list(factors.values())
            }), hide_index=True)

    def _show_prediction_history(self):
        history = self.db.get_prediction_history()
        if history:
            df = pd.DataFrame(history).drop(columns=["environmental_factors"])
            st.dataframe(df)
            if st.button("Clear History"):
                self.db.clear_history()
                st.rerun()
        else:
            st.info("No saved predictions yet")
