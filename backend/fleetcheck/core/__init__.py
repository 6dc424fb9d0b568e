"""
Core module for application configuration and domain logic.

Only settings is exported here. The test_history package imports
fleetcheck.models, and fleetcheck.models imports fleetcheck.core.datetime_utils,
so importing test_history at package level would be circular. Import it
directly: from fleetcheck.core.test_history import ...
"""
from .config import settings

__all__ = ["settings"]
