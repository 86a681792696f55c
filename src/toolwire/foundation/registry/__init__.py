"""Tool registry: registration, lookup and schema export."""

from .registry import RegistrationReport, ToolRegistry, get_registry, reset_registry, set_registry
from .signature import Signature, reflect

__all__ = [
    "ToolRegistry", "RegistrationReport",
    "get_registry", "set_registry", "reset_registry",
    "Signature", "reflect",
]
