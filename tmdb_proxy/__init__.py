"""
TMDB Edge Proxy.

Reverse proxy for the TMDB REST API and its image CDN.
"""

__version__ = "2.0.0"
