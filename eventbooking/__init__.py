"""
eventbooking - Availability and booking engine for schedulable events.
"""

__version__ = "0.1.0"
