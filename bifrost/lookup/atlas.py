"""Postal code lookups against the atlas database."""

from __future__ import annotations

from pathlib import Path

from bifrost.common.constants import ATLAS_DB_PATH
from bifrost.common.errors import GeoLocationNotFound
from bifrost.common.models import GeoLocation
from bifrost.lookup.store import ReadOnlyStore

GET_GEO_LOCATION_BY_POSTAL_CODE = """SELECT country_code, postal_code, place_name,
admin_name1, admin_code1, admin_name2,
admin_code2, admin_name3, admin_code3,
latitude, longitude, accuracy
FROM geo_location WHERE postal_code = ?
ORDER BY id LIMIT 1"""


class Atlas(ReadOnlyStore):
    def __init__(self, path: Path = Path(ATLAS_DB_PATH)) -> None:
        super().__init__(path)

    def get_geo_location_by_postal_code(self, postal_code: str) -> GeoLocation:
        row = self.query_one(GET_GEO_LOCATION_BY_POSTAL_CODE, (postal_code,))
        if row is None:
            raise GeoLocationNotFound(f"geo location not found for postal code {postal_code}")
        return GeoLocation(
            country_code=row["country_code"],
            postal_code=row["postal_code"],
            place_name=row["place_name"],
            admin_name1=row["admin_name1"],
            admin_code1=row["admin_code1"],
            admin_name2=row["admin_name2"],
            admin_code2=row["admin_code2"],
            admin_name3=row["admin_name3"],
            admin_code3=row["admin_code3"],
            latitude=float(row["latitude"]),
            longitude=float(row["longitude"]),
            accuracy=int(row["accuracy"] or 0),
        )
