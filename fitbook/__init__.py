"""
FitBook.

Booking service connecting fitness trainers and clients, backed by Supabase.
"""

__version__ = "1.0.0"
__description__ = "Booking service connecting fitness trainers and clients"

__all__ = ["__version__"]
