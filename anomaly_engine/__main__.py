"""Run the anomaly detection service: ``python -m anomaly_engine``."""

from anomaly_engine.service import run

run()
