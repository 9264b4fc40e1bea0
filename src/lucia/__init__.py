"""
lucia - Sales assistant backend

Proxies chat turns to a hosted assistant with catalog pricing tools, and
keeps the Spot Gifts catalog in sync with the Stricker API.
"""

__version__ = "1.0.0"
