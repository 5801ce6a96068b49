"""Central version information for the SpoonGrid plugin."""

__version__ = "0.3.0"
