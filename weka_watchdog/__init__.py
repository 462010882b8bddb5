"""Weka watchdog — periodic health check and bounded restart for the local Weka service."""

__version__ = "0.1.0"
