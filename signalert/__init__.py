"""SignAlert - real-time hand sign matching with voice alerts."""

__version__ = "0.1.0"
