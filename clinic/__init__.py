"""
Dental Clinic Engine

A FastAPI-based service for the dental clinic appointment lifecycle,
walk-in queueing, role-based access control and dashboard metrics.
"""

__version__ = "1.0.0"
