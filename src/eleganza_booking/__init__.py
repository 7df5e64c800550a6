"""Scheduling and availability engine for the Eleganza salon booking flow."""

__version__ = "0.1.0"
