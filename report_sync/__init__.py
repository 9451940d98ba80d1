"""
Report Sync

One-way projection of the canonical decision database (meetings, decisions,
sub-decisions) into the denormalized report database.
"""

__version__ = "0.1.0"
