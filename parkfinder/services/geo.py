"""
parkfinder/services/geo.py

地理計算ユーティリティ

Haversine公式による大圏距離と、距離の表示用フォーマット。
副作用・例外なし。

参照: https://en.wikipedia.org/wiki/Haversine_formula
"""
import math

from parkfinder.models.location import Coordinates


EARTH_RADIUS_KM = 6371.0


def distance_km(a: Coordinates, b: Coordinates) -> float:
    """
    2点間のHaversine距離（km）

    対称（distance_km(a, b) == distance_km(b, a)）で、同一地点なら0。
    """
    phi1, phi2 = math.radians(a.latitude), math.radians(b.latitude)
    delta_phi = math.radians(b.latitude - a.latitude)
    delta_lambda = math.radians(b.longitude - a.longitude)

    h = (math.sin(delta_phi / 2) ** 2 +
         math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_KM * c


def format_distance(km: float) -> str:
    """
    距離を表示用文字列に変換

    1km未満はメートル（整数）、1km以上は小数1桁のkm。

    使用例:
        format_distance(0.42)  # "420 m"
        format_distance(2.345)  # "2.3 km"
    """
    if km < 1:
        # 四捨五入（0.5は切り上げ）
        meters = math.floor(km * 1000 + 0.5)
        return f"{meters} m"
    return f"{km:.1f} km"
