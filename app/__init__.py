"""
Clinic Appointment Scheduler

A FastAPI service for doctor availability, appointment booking with
per-doctor conflict checks, and role-scoped access for admins, doctors
and patients.
"""

__version__ = "1.0.0"
