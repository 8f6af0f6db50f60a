"""
parkfinder/routers/__init__.py

ルーターパッケージ
"""
from .locations import router as locations_router

__all__ = ["locations_router"]
