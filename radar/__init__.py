"""
Neighborhood Radar - proximity-aware civic report aggregation and insights.
"""

__version__ = "0.1.0"
