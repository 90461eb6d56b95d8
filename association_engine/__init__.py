"""
Association Engine

Scores and aggregates biomedical evidence between sources and
destinations (e.g. targets and diseases) with indirect expansion,
faceting and pagination.
"""

__version__ = "0.1.0"
