"""Trip planner API: cached trip search and saved trips."""

__version__ = "1.0.0"
