"""
Trash Clean - Pickup Verification Core

Community litter reporting: find pending litter nearby, prove a pickup
with a photo taken on site, and report new litter.
"""

__version__ = "0.1.0"
