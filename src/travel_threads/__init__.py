# src/travel_threads/__init__.py
"""Travel Threads data-access and feed-composition layer."""

__version__ = "0.1.0"
