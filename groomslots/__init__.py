"""
groomslots - appointment availability and slot allocation for grooming salons.
"""

__version__ = "0.1.0"
