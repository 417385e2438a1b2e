"""Spark Comex: import lifecycle tracking and credit utilization for importers."""

__version__ = "0.1.0"
