"""
parkfinder/data/__init__.py

データパッケージ
"""
from .seed import SEED_LOCATIONS, SEED_PACKAGES

__all__ = ["SEED_LOCATIONS", "SEED_PACKAGES"]
