"""diskpilot - SSD/HDD aware volume optimization for Windows."""

__version__ = "0.3.0"
