"""
Dealer Console

Payment and contract workflow service for car dealerships.
"""

__version__ = "1.0.0"
