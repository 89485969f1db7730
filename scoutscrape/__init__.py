"""
scoutscrape - caches JPL Scout hazard assessments and loads them into TimescaleDB.
"""

__version__ = "0.1.0"
