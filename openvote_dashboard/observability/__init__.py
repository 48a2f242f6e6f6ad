"""
Observability setup for the dashboard core.
"""

from .config import setup_observability, setup_structured_logging, sampling_ratio

__all__ = ["setup_observability", "setup_structured_logging", "sampling_ratio"]
