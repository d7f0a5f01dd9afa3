"""
Shepherd scaffold and build helpers for Drupal projects.
"""

from shepherd_scaffold.config.settings import VERSION

__version__ = VERSION
