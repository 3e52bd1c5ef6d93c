"""Veneer package root."""

__version__ = "0.1.0"

from veneer.document import Document
from veneer.exceptions import NeverRaise, NeverThrown, VeneerError
from veneer.invariants import never

__all__ = ["__version__", "Document", "NeverRaise", "NeverThrown", "VeneerError", "never"]
