"""Repository Migration Tool

Mirrors git repositories, with every branch, tag and commit, into a GitLab
instance, creating the destination group hierarchy and projects on demand.
"""

__version__ = '0.1.0'

from .cli import main

__all__ = ['main']
