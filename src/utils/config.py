# src/utils/config.py
import os
import logging
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]

STORMGLASS_API_KEY = os.getenv("STORMGLASS_API_KEY", "")
STORMGLASS_BASE_URL = os.getenv("STORMGLASS_BASE_URL", "https://api.stormglass.io/v2")

DB_PATH = os.getenv("SEAWISE_DB_PATH", "seawise.db")
DATA_FILE = Path(os.getenv("SEAWISE_DATA_FILE", str(PROJECT_ROOT / "data" / "demo_biofouling.csv")))

LOG_FILE = os.getenv("SEAWISE_LOG_FILE", "seawise.log")
LOG_LEVEL = os.getenv("SEAWISE_LOG_LEVEL", "INFO")
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(log_file: str = LOG_FILE, level: str = LOG_LEVEL) -> None:
    """Configure root logging to the log file and the console"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )
