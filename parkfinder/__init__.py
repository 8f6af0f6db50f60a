"""
parkfinder

駐車場ロケーション検索・在庫エンジン
"""
__version__ = "1.0.0"
