"""
slotbooking - appointment availability and multi-service booking engine.
"""

__version__ = "0.1.0"
