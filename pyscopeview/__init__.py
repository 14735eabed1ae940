"""Screen capture and live view for the Instek GDS-820C oscilloscope."""

__version__ = "0.1.0"
