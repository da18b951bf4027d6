"""
Startup rate sync.
"""
from fxsync.startup.coordinator import StartupCoordinator, StartupReport, get_startup_coordinator

__all__ = [
    "StartupCoordinator",
    "StartupReport",
    "get_startup_coordinator",
]
