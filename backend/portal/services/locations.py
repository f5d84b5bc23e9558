"""Division → district → upazila directory built from the bd-*.json lookups."""

import json
import logging
from pathlib import Path

from portal.schemas.location import District, Division, Upazila

logger = logging.getLogger(__name__)

DIVISIONS_FILE = "bd-divisions.json"
DISTRICTS_FILE = "bd-districts.json"
UPAZILAS_FILE = "bd-upazilas.json"


class InvalidLocation(ValueError):
    pass


def _records(raw: object, key: str) -> list[dict]:
    """Accept ``{"<key>": [...]}``, a phpMyAdmin export array, or a bare list."""
    if isinstance(raw, dict):
        return list(raw.get(key, []))
    if isinstance(raw, list):
        for entry in raw:
            if isinstance(entry, dict) and entry.get("type") == "table":
                return list(entry.get("data", []))
        return [r for r in raw if isinstance(r, dict) and "id" in r]
    return []


def _load(path: Path, key: str) -> list[dict]:
    with path.open(encoding="utf-8") as fh:
        return _records(json.load(fh), key)


class LocationDirectory:
    def __init__(
        self,
        divisions: list[Division],
        districts: list[District],
        upazilas: list[Upazila],
    ):
        self.divisions = divisions
        self._divisions = {d.id: d for d in divisions}
        self._districts = {d.id: d for d in districts}
        self._upazilas = {u.id: u for u in upazilas}
        self._districts_by_division: dict[str, list[District]] = {}
        for d in districts:
            self._districts_by_division.setdefault(d.division_id, []).append(d)
        self._upazilas_by_district: dict[str, list[Upazila]] = {}
        for u in upazilas:
            self._upazilas_by_district.setdefault(u.district_id, []).append(u)

    @classmethod
    def from_dir(cls, directory: Path) -> "LocationDirectory":
        directory = Path(directory)
        divisions = [
            Division.model_validate(r) for r in _load(directory / DIVISIONS_FILE, "divisions")
        ]
        districts = [
            District.model_validate(r) for r in _load(directory / DISTRICTS_FILE, "districts")
        ]
        upazilas = [
            Upazila.model_validate(r) for r in _load(directory / UPAZILAS_FILE, "upazilas")
        ]
        logger.info(
            "Loaded %d divisions, %d districts, %d upazilas from %s",
            len(divisions),
            len(districts),
            len(upazilas),
            directory,
        )
        return cls(divisions, districts, upazilas)

    def division(self, division_id: str) -> Division | None:
        return self._divisions.get(division_id)

    def districts_of(self, division_id: str) -> list[District]:
        return list(self._districts_by_division.get(division_id, []))

    def upazilas_of(self, district_id: str) -> list[Upazila]:
        return list(self._upazilas_by_district.get(district_id, []))

    def district_by_name(self, name: str) -> District | None:
        needle = name.strip().lower()
        return next((d for d in self._districts.values() if d.name.lower() == needle), None)

    def select(
        self,
        division_id: str | None = None,
        district_id: str | None = None,
        upazila_id: str | None = None,
    ) -> tuple[Division | None, District | None, Upazila | None]:
        """Resolve a possibly partial dropdown selection.

        Each chosen level must belong to the level above it, so a district
        cannot be picked without its division.
        """
        division = district = upazila = None
        if division_id:
            division = self._divisions.get(division_id)
            if division is None:
                raise InvalidLocation(f"Unknown division '{division_id}'")
        if district_id:
            district = self._districts.get(district_id)
            if district is None or division is None or district.division_id != division.id:
                raise InvalidLocation(f"District '{district_id}' is not in the selected division")
        if upazila_id:
            upazila = self._upazilas.get(upazila_id)
            if upazila is None or district is None or upazila.district_id != district.id:
                raise InvalidLocation(f"Upazila '{upazila_id}' is not in the selected district")
        return division, district, upazila

    def resolve(
        self, division_id: str, district_id: str, upazila_id: str
    ) -> tuple[Division, District, Upazila]:
        """Resolve a complete selection (all three levels required)."""
        division, district, upazila = self.select(division_id, district_id, upazila_id)
        if division is None or district is None or upazila is None:
            raise InvalidLocation("Division, district and upazila are all required")
        return division, district, upazila

    def check_names(self, district_name: str, upazila_name: str) -> None:
        """Check a district/upazila pair given by name.

        Districts without upazila data in the directory only get the district check.
        """
        district = self.district_by_name(district_name)
        if district is None:
            raise InvalidLocation(f"Unknown district '{district_name}'")
        upazilas = self._upazilas_by_district.get(district.id)
        if not upazilas:
            return
        needle = upazila_name.strip().lower()
        if not any(u.name.lower() == needle for u in upazilas):
            raise InvalidLocation(f"Upazila '{upazila_name}' is not in {district.name}")
