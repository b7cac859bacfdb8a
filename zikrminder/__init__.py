"""Desktop adhkar reminder with per-item interval schedules."""

__version__ = "0.1.0"
