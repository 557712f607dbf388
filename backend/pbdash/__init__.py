"""
PB Dash backend.

Syncs Concept2 Logbook results and derives personal records from them.
"""

__version__ = "0.1.0"
