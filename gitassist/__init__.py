"""
GIT ASSIST: gated change submission for a git project.

Scan, stage, commit, push and prune, one confirmation at a time.
"""

from gitassist.identity import __codename__, __tagline__, __version__

__all__ = ["__codename__", "__tagline__", "__version__"]
