"""
SiteModel: authoritative in-memory site data with invariant-preserving
mutation helpers and on-demand validation.
"""

from .model import SiteModel
from .validation import device_errors, validate_site

__all__ = [
    "SiteModel",
    "device_errors",
    "validate_site",
]
