"""Server-side match engine for the Ride the Bus card game."""

__version__ = "1.0.0"
