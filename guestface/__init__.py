"""Face matching and guest clustering for event photo collections."""
__version__ = "0.1.0"
