"""
Water Temperature Estimation System

This package estimates and projects the surface temperature of ponds, lakes
and reservoirs from weather observations and forecasts.
"""

__version__ = "2.3.0"
__description__ = "Water temperature estimation and projection for small and medium freshwater bodies"


def __getattr__(name):
    """Lazy import to avoid importing dependencies when not needed."""
    if name == "WaterTempEngine":
        from .engine import WaterTempEngine
        return WaterTempEngine
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "WaterTempEngine",
]
