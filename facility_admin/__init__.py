"""Facility admin - client for the facility-booking platform's admin dashboard"""

__version__ = "0.1.0"
