"""Photography portfolio: thumbnail build, justified gallery layout, preview server."""

__version__ = "0.3.0"
