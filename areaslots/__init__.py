"""
areaslots - weekly availability and bookings across locations with travel buffers.
"""

__version__ = "0.1.0"
