"""
sealbid Vendor Registry Module.

Manages vendor reputation and award badges.
"""

from sealbid.core.registry.reputation import VendorRegistry, badge_metadata

__all__ = [
    "VendorRegistry",
    "badge_metadata",
]
