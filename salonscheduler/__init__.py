"""
salonscheduler - appointment slot computation and conflict-safe booking for a salon.
"""

__version__ = "0.1.0"
