"""fitbook: class booking and recurring-schedule engine."""

__version__ = "0.1.0"
