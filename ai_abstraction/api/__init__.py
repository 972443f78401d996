"""
Optional HTTP surface for the abstraction layer (FastAPI).
"""

from ai_abstraction.api.app import create_app

__all__ = ["create_app"]
