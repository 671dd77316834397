"""Domain services shared by the API routes."""

from .associations import AssociationManager

__all__ = ["AssociationManager"]
