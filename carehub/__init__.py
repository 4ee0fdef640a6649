"""
CareHub

A FastAPI-based healthcare marketplace: patients review doctors, laboratories
and pharmacies, discover nurses, hospitals and nearby providers, and book
laboratory tests, while admins approve provider registrations.
"""

__version__ = "1.0.0"
