# This project was developed with assistance from AI tools.
"""RentSphere rental marketplace API."""

__version__ = "0.1.0"
