"""Host application components."""

from .application import Application

__all__ = ["Application"]
