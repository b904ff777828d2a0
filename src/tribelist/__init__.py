"""TribeList - Shared lists with sync state tracking and weighted menus."""

__version__ = "0.1.0"
