"""
Service layer helpers that orchestrate storage adapters and domain logic.
"""

from .booking import AppointmentSource, BookingService, ClosureSource, CommitSink

__all__ = ["AppointmentSource", "BookingService", "ClosureSource", "CommitSink"]
