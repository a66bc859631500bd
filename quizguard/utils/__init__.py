"""Service-wide utilities"""

from .logging_config import setup_logging, ProctorEventFilter

__all__ = ["setup_logging", "ProctorEventFilter"]
