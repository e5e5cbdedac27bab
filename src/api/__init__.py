"""
API Service - HTTP surface for job fit analysis.
"""

from .server import create_app

__all__ = ["create_app"]
