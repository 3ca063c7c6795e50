"""
studypace: adaptive learning-analytics engine for a personal study tracker.
"""

__version__ = "1.0.0"
