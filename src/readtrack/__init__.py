"""readtrack - personal reading tracker.

Log books, track page progress, time reading sessions and chase goals.
"""

__version__ = "0.1.0"
