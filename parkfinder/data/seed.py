"""
parkfinder/data/seed.py

初期データ（シード）

ストアが空の場合に書き込まれる駐車場とパッケージのデータセット。
テグシガルパ市内の5か所、各3パッケージ。
"""
from parkfinder.models.location import LocationPackage, ParkingLocation


SEED_LOCATIONS: list[ParkingLocation] = [
    ParkingLocation(
        id="loc-1",
        name="Multiplaza",
        address="Blvd Morazán, Tegucigalpa",
        latitude=14.0723,
        longitude=-87.1921,
        description="Centro comercial con estacionamiento techado",
        available_spots=45,
        total_spots=150,
        hourly_rate=25,
    ),
    ParkingLocation(
        id="loc-2",
        name="Hospital Viera",
        address="Col. Humuya, Tegucigalpa",
        latitude=14.0840,
        longitude=-87.2069,
        description="Estacionamiento del hospital con seguridad 24/7",
        available_spots=12,
        total_spots=80,
        hourly_rate=20,
    ),
    ParkingLocation(
        id="loc-3",
        name="UNAH",
        address="Ciudad Universitaria, Tegucigalpa",
        latitude=14.0886,
        longitude=-87.1677,
        description="Estacionamiento universitario para estudiantes y visitantes",
        available_spots=23,
        total_spots=200,
        hourly_rate=15,
    ),
    ParkingLocation(
        id="loc-4",
        name="Aeropuerto Toncontín",
        address="Aeropuerto Internacional, Tegucigalpa",
        latitude=14.0608,
        longitude=-87.2172,
        description="Estacionamiento del aeropuerto internacional",
        available_spots=67,
        total_spots=300,
        hourly_rate=35,
    ),
    ParkingLocation(
        id="loc-5",
        name="Banco Central",
        address="Centro, Tegucigalpa",
        latitude=14.1020,
        longitude=-87.2070,
        description="Estacionamiento en el centro de la ciudad",
        available_spots=8,
        total_spots=50,
        hourly_rate=30,
    ),
]


def _package(id, location_id, name, minutes, price, original_price, discount,
             description, is_popular=False) -> LocationPackage:
    return LocationPackage(
        id=id,
        location_id=location_id,
        name=name,
        minutes=minutes,
        price=price,
        original_price=original_price,
        discount=discount,
        description=description,
        is_popular=is_popular,
    )


SEED_PACKAGES: list[LocationPackage] = [
    # Multiplaza
    _package("pkg-1-1", "loc-1", "2 Horas", 120, 40, 50, 20, "Perfecto para compras rápidas"),
    _package("pkg-1-2", "loc-1", "4 Horas", 240, 70, 100, 30, "Para una tarde de shopping", True),
    _package("pkg-1-3", "loc-1", "Día Completo", 480, 120, 200, 40, "Todo el día en el centro comercial"),

    # Hospital Viera
    _package("pkg-2-1", "loc-2", "1 Hora", 60, 15, 20, 25, "Consulta médica rápida", True),
    _package("pkg-2-2", "loc-2", "3 Horas", 180, 45, 60, 25, "Para procedimientos o emergencias"),
    _package("pkg-2-3", "loc-2", "6 Horas", 360, 80, 120, 33, "Hospitalización o cirugía ambulatoria"),

    # UNAH
    _package("pkg-3-1", "loc-3", "3 Horas", 180, 35, 45, 22, "Para clases matutinas", True),
    _package("pkg-3-2", "loc-3", "6 Horas", 360, 60, 90, 33, "Jornada completa de estudio"),
    _package("pkg-3-3", "loc-3", "Día Completo", 480, 90, 120, 25, "Para estudiantes de tiempo completo"),

    # Aeropuerto Toncontín
    _package("pkg-4-1", "loc-4", "2 Horas", 120, 60, 70, 14, "Viajes cortos"),
    _package("pkg-4-2", "loc-4", "1 Día", 1440, 200, 280, 29, "Viajes de un día", True),
    _package("pkg-4-3", "loc-4", "3 Días", 4320, 450, 840, 46, "Viajes de fin de semana"),

    # Banco Central
    _package("pkg-5-1", "loc-5", "1 Hora", 60, 25, 30, 17, "Trámites bancarios rápidos", True),
    _package("pkg-5-2", "loc-5", "2 Horas", 120, 45, 60, 25, "Gestiones en el centro"),
    _package("pkg-5-3", "loc-5", "4 Horas", 240, 80, 120, 33, "Trabajo en el centro de la ciudad"),
]
