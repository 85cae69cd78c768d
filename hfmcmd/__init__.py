"""Drive a consolidation server through named, discoverable commands."""

__version__ = "0.1.0"
