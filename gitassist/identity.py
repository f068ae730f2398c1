"""GIT ASSIST identity constants."""

__version__ = "1.3.0"
__codename__ = "GIT ASSIST"
__tagline__ = "Gate it. Stage it. Ship it."

BANNER = r"""
   ___ _ _     _            _    _
  / __(_) |_  /_\   ______ (_)__| |_
 | (_ | |  _|/ _ \ (_-<_-< | (_-<  _|
  \___|_|\__/_/ \_\/__/__/ |_/__/\__|
"""
