import streamlit as st
import folium
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
from streamlit_folium import folium_static
import logging
import random
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).parent.parent.parent))

from src.dashboard.predictor_page import BiofoulingPredictorPage
from src.database.db_manager import DatabaseManager
from src.models.biofouling import get_estimator, predict_biofouling
from src.models.types import EnvironmentalReading
from src.utils.api_handler import VALID_TIMEFRAMES, FleetDataSimulator
from src.utils.config import setup_logging
from src.utils.data_manager import BiofoulingDataManager, DataLoadError, format_value

logger = logging.getLogger(__name__)

FOULING_COLORS = {
    "clean": "green",
    "low": "beige",
    "medium": "orange",
    "high": "red"
}


class Dashboard:
    def __init__(self, seed: int = 42):
        self.data = BiofoulingDataManager()
        self.db_manager = DatabaseManager()
        self.simulator = FleetDataSimulator(random.Random(seed))
        self.predictor = BiofoulingPredictorPage(self.db_manager, self.data)

    def run(self):
        st.sidebar.title("SeaWise Hull Monitor")
        page = st.sidebar.radio(
            "Navigation",
            ["Fleet Overview", "Biofouling Predictor", "Analytics"]
        )

        if page == "Fleet Overview":
            self._show_main_dashboard()
        elif page == "Biofouling Predictor":
            self.predictor.show()
        elif page == "Analytics":
            self._show_analytics()

    def _show_main_dashboard(self):
        st.title("Hull Fouling Fleet Overview")

        try:
            fleet = self.data.summarize_fleet()
        except DataLoadError as e:
            st.error(f"Error loading vessel data: {str(e)}")
            return

        tab1, tab2, tab3 = st.tabs([
            "Recorded Voyages",
            "Demo Fleet",
            "Demo Predictions"
        ])

        with tab1:
            self._show_recorded_fleet(fleet)

        with tab2:
            self._show_demo_fleet()

        with tab3:
            self._show_demo_predictions()

    def _show_recorded_fleet(self, fleet):
        map_col, info_col = st.columns([2, 1])
        vessels = fleet["vessels"]

        with map_col:
            center = vessels[0]["location"] if vessels else (0.0, 0.0)
            m = folium.Map(location=list(center), zoom_start=7, tiles="OpenStreetMap")

            track = [v["location"] for v in vessels]
            if len(track) > 1:
                folium.PolyLine(track, weight=2, color='blue', opacity=0.6).add_to(m)

            for vessel in vessels:
                folium.Marker(
                    vessel["location"],
                    popup=self._create_popup(vessel),
                    icon=folium.Icon(
                        color=FOULING_COLORS.get(vessel["fouling_class"], "gray"),
                        icon='ship',
                        prefix='fa'
                    )
                ).add_to(m)

            folium_static(m)

        with info_col:
            st.subheader("Fleet Status")
            summary = fleet["summary"]
            col1, col2 = st.columns(2)
            with col1:
                st.metric("Records", summary["total_vessels"])
                st.metric("En Route", summary["active_vessels"])
            with col2:
                st.metric("Maintenance Flags", summary["maintenance_flags"])
                st.metric("Avg Fuel", summary["avg_fuel_penalty"])

            status_filter = st.multiselect(
                "Filter by Status",
                options=["Idle", "Maintenance", "En Route", "Docked"]
            )
            for vessel in vessels:
                if not status_filter or vessel["status"] in status_filter:
                    self._show_vessel_card(vessel)

    def _show_vessel_card(self, vessel):
        """Display individual record card"""
        env = vessel["environmental_data"]
        with st.expander(f"🚢 {vessel['name']} · {vessel['date']}"):
            st.write(f"**Status:** {vessel['status']}")
            st.write(f"**Fouling:** {format_value(vessel['fouling_percent'], 'percentage')} "
                     f"({vessel['fouling_class']})")
            st.write(f"**Days since cleaning:** {vessel['days_since_clean']}")
            st.write(f"**Fuel:** {vessel['fuel_penalty']}")
            st.write(f"🌡️ {format_value(env['sea_temperature'], 'temperature')} · "
                     f"🧂 {format_value(env['salinity'], 'salinity')}")

    @staticmethod
    def _create_popup(vessel) -> str:
        return (
            f"<b>{vessel['name']}</b><br>"
            f"{vessel['date']}<br>"
            f"Fouling: {vessel['fouling_percent']}% ({vessel['fouling_class']})<br>"
            f"Status: {vessel['status']}"
        )

    def _show_demo_fleet(self):
        fleet = self.simulator.generate_fleet()
        summary = fleet["summary"]

        col1, col2, col3 = st.columns(3)
        with col1:
            st.metric("Total Vessels", summary["total_vessels"])
        with col2:
            st.metric("In Maintenance", summary["in_maintenance"])
        with col3:
            st.metric("Average Fouling", f"{summary['avg_fouling']}%")

        df = pd.DataFrame([
            {
                "Vessel": v["name"],
                "Type": v["type"],
                "Operator": v["operator"],
                "Destination": v["destination"],
                "Fouling %": v["performance"]["fouling_percent"],
                "Class": v["performance"]["fouling_class"],
                "Fuel Penalty %": v["performance"]["fuel_penalty_percent"],
                "Priority": v["maintenance"]["priority"],
            }
            for v in fleet["vessels"]
        ])
        st.dataframe(df, hide_index=True)

        fig = px.bar(df, x="Vessel", y="Fouling %", color="Class",
                     color_discrete_map=FOULING_COLORS, title="Demo Fleet Fouling")
        st.plotly_chart(fig, use_container_width=True)

    def _show_demo_predictions(self):
        """Model catalogue and simulated per-vessel forecasts"""
        st.subheader("Prediction Models")
        st.dataframe(pd.DataFrame([
            {
                "Model": m["name"],
                "Version": m["version"],
                "Status": m["status"],
                "Estimator": m["estimator"],
                "Features": ", ".join(m["features"]),
            }
            for m in self.simulator.prediction_models()
        ]), hide_index=True)

        timeframe = st.selectbox("Timeframe", VALID_TIMEFRAMES, index=VALID_TIMEFRAMES.index("30d"))
        try:
            result = self.simulator.generate_predictions(timeframe=timeframe)
        except ValueError as e:
            st.error(str(e))
            return

        fouling_df = pd.DataFrame([
            {
                "Vessel": vessel["vessel_name"],
                "Days Ahead": int(entry["timeframe"][:-1]),
                "Fouling %": entry["predicted"],
                "Recommendation": entry["recommendation"],
            }
            for vessel in result["predictions"]
            for entry in vessel["biofouling"]["predictions"]
        ])
        fig = px.line(fouling_df, x="Days Ahead", y="Fouling %", color="Vessel",
                      markers=True, hover_data=["Recommendation"], title="Forecast Fouling")
        fig.add_hline(y=75, line_dash="dash", annotation_text="Cleaning threshold")
        st.plotly_chart(fig, use_container_width=True)

        st.dataframe(pd.DataFrame([
            {
                "Vessel": vessel["vessel_name"],
                "Horizon": entry["timeframe"],
                "Baseline (tpd)": entry["baseline"],
                "Predicted (tpd)": entry["predicted"],
                "Increase (tpd)": entry["increase"],
            }
            for vessel in result["predictions"]
            for entry in vessel["fuel_consumption"]["predictions"]
        ]), hide_index=True)

    def _show_analytics(self):
        """Display analytics page"""
        st.title("Biofouling Analytics")

        try:
            vessel_id = st.selectbox("Vessel", self.data.get_vessel_ids())
            series = self.data.generate_time_series()
            metrics = self.data.calculate_fleet_metrics(vessel_id)
            comparison = self.data.compare_with_estimator()
        except DataLoadError as e:
            st.error(f"Error loading analytics data: {str(e)}")
            return

        st.subheader("Fleet KPIs")
        summary = metrics["summary"]
        col1, col2, col3, col4 = st.columns(4)
        with col1:
            st.metric("Average Fouling", format_value(summary["average_fouling"], "percentage"))
        with col2:
            st.metric("Average Fuel", format_value(summary["average_fuel_consumption"], "fuel"))
        with col3:
            st.metric("High Fouling Share", f"{summary['high_fouling_percentage']}%")
        with col4:
            effectiveness = summary["cleaning_effectiveness"]
            st.metric("Cleaning Effectiveness", "n/a" if effectiveness is None else f"{effectiveness}%")

        st.subheader("Recorded Trends")
        fig = px.line(
            series.melt(id_vars=["date"], var_name="Metric", value_name="Value"),
            x="date",
            y="Value",
            color="Metric",
            markers=True,
            title="Fouling, Fuel and Conditions Over Time"
        )
        st.plotly_chart(fig, use_container_width=True)

        st.subheader(f"{vessel_id} Fouling Progression")
        progression = pd.DataFrame(metrics["trends"]["fouling_progression"])
        fig = go.Figure()
        fig.add_trace(go.Scatter(x=progression["date"], y=progression["fouling"],
                                 name="Fouling (%)", mode='lines+markers'))
        for event in metrics["trends"]["cleaning_impact"]:
            fig.add_vline(x=event["date"], line_dash="dot", line_color="green")
        fig.update_layout(xaxis_title='Date', yaxis_title='Fouling (%)', height=350)
        st.plotly_chart(fig, use_container_width=True)

        st.subheader("Recorded vs Estimated Fouling")
        fig = px.line(
            comparison.melt(id_vars=["date"], value_vars=["recorded_fouling", "estimated_fouling"],
                            var_name="Source", value_name="Fouling (%)"),
            x="date",
            y="Fouling (%)",
            color="Source",
            markers=True
        )
        st.plotly_chart(fig, use_container_width=True)
        st.dataframe(comparison, hide_index=True)

        self._show_growth_curve()

    def _show_growth_curve(self):
        """Fouling against days since cleaning for both estimators"""
        st.subheader("Growth Curve")
        col1, col2 = st.columns(2)
        with col1:
            temperature = st.slider("Sea temperature (°C)", -2.0, 40.0, 26.0, 0.5)
            salinity = st.slider("Salinity (PSU)", 0.0, 45.0, 35.0, 0.5)
        with col2:
            speed = st.slider("Vessel speed (knots)", 0.0, 30.0, 8.0, 0.5)
            idle = st.slider("Idle hours", 0.0, 168.0, 4.0, 1.0)

        base = EnvironmentalReading(
            sea_temperature_c=temperature,
            salinity_psu=salinity,
            vessel_speed_knots=speed,
            idle_hours=idle
        )
        days = list(range(0, 121, 2))

        fig = go.Figure()
        for variant in ["enhanced", "baseline"]:
            estimator = get_estimator(variant)
            fig.add_trace(go.Scatter(
                x=days,
                y=[estimator.predict(base.days_later(d)).fouling_percent for d in days],
                name=variant.capitalize(),
                mode='lines'
            ))
        fig.add_hline(y=75, line_dash="dash", annotation_text="Cleaning threshold")
        fig.update_layout(
            xaxis_title='Days since cleaning',
            yaxis_title='Fouling (%)',
            height=400,
            hovermode='x unified'
        )
        st.plotly_chart(fig, use_container_width=True)

        at_90 = predict_biofouling(base.days_later(90))
        st.caption(f"After 90 days: {at_90.fouling_percent}% fouling, "
                   f"+{at_90.fuel_penalty_percent}% fuel")


if __name__ == "__main__":
    st.set_page_config(
        page_title="SeaWise Hull Monitor",
        page_icon="🚢",
        layout="wide"
    )

    setup_logging()
    dashboard = Dashboard()
    dashboard.run()
