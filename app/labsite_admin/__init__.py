"""Admin console backend for the research-lab website."""

__version__ = "0.1.0"
