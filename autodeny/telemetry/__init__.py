"""Telemetry package for structured logging setup."""

from .logging import telemetry_setup_logging

__all__ = ["telemetry_setup_logging"]
