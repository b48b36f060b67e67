"""
Version information for the course assistant.
This file follows semantic versioning (MAJOR.MINOR.PATCH):
- MAJOR version for incompatible changes to the message API or configuration
- MINOR version for backwards-compatible functionality
- PATCH version for backwards-compatible bug fixes
"""

__version__ = "0.3.0"
__version_info__ = tuple(map(int, __version__.split('.')))
