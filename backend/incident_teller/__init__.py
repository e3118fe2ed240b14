"""Incident Teller: root cause, timeline and blast-radius analysis for alert batches."""

__version__ = "1.0.0"
