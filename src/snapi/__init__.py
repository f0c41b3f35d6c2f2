"""SNAPI mobile API client: session lifecycle, single-flight refresh and request coordination."""

__version__ = "0.1.0"
