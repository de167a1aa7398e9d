"""Stored image metadata."""

from .models import ImageRef

__all__ = ["ImageRef"]
