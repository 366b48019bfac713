"""
EPG listings synchronization.

Pulls schedules, program details and artwork from SchedulesDirect and turns them
into normalized program and channel records.
"""

__version__ = "0.1.0"
