"""
Fragments: typed content with validation and format conversion.

The domain package holds the content model; infrastructure holds the storage
gateway; cli exposes the engine on local files.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
