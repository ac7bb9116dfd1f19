"""Accessibility audit job watcher."""

__version__ = "0.1.0"
