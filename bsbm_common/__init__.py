"""Shared helpers for bsbm-harness."""

from bsbm_common.api import HarnessError, configure_logging

__all__ = ["HarnessError", "configure_logging"]
