"""Command-line interface for the OneTimeSecret client"""

from ots_client import __version__

__all__ = ["__version__"]
