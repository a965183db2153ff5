"""
Test suite for the Clinic Appointment Scheduler.

Contains unit and integration tests for the scheduling core and its API.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
