"""
Telemetry Hub

Log upload, command delivery and resumable export for probe fleets.
"""

__version__ = "1.0.0"
