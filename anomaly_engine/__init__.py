"""
Anomaly Detection Engine.

An in-process engine that ingests per-metric time series, evaluates them
against several independent detection strategies on a fixed cadence, fuses
the verdicts and materializes anomalous results as acknowledgeable alerts.

This package provides:
- Data models for data points, detection results, models, patterns and alerts
- Bounded in-memory series and alert stores
- Statistical, rule-based and rank-outlier detection strategies
- Score fusion, a periodic sweep scheduler and an engine facade
- Configuration management
"""

__version__ = "0.1.0"
