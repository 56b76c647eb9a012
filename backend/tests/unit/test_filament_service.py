"""
Unit tests for the filament service

Testing payload validation order, id assignment, persistence of new
filaments and the catalog integrity check
"""
import json
import threading
import time

import pytest

from app.db.catalog_store import CatalogStore
from app.exceptions import CatalogStorageError, FilamentValidationError
from app.schemas.catalog import CatalogDocument, Filament, Material
from app.schemas.filament import parse_number
from app.services.filament_service import (
    check_catalog,
    create_filament,
    next_filament_id,
    validate_filament_payload,
)


def valid_payload(**overrides):
    payload = {
        "brand": "X",
        "product_name": "Y",
        "material": "PLA",
        "nozzle_temp_min": 200,
        "nozzle_temp_max": 220,
        "bed_temp_min": 50,
        "bed_temp_max": 60,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def catalog_path(tmp_path):
    path = tmp_path / "filaments.json"
    path.write_text(json.dumps({
        "materials": [{"name": "PLA", "description": "Easy to print"}],
        "filaments": [],
    }, indent=2), encoding="utf-8")
    return path


@pytest.fixture
def store(catalog_path):
    return CatalogStore(catalog_path)


class TestValidatePayload:
    """Test validate_filament_payload"""

    def test_valid_payload(self):
        candidate = validate_filament_payload(valid_payload())

        assert candidate.brand == "X"
        assert candidate.nozzle_temp_min == 200
        assert candidate.color is None
        assert candidate.special_type is None
        assert candidate.notes == ""

    def test_strings_are_trimmed(self):
        candidate = validate_filament_payload(valid_payload(
            brand="  eSUN ", color=" black ", special_type="  ", notes=" dry first "
        ))

        assert candidate.brand == "eSUN"
        assert candidate.color == "black"
        assert candidate.special_type is None
        assert candidate.notes == "dry first"

    def test_numeric_strings_are_accepted(self):
        candidate = validate_filament_payload(valid_payload(nozzle_temp_min="205", bed_temp_max=" 65 "))

        assert candidate.nozzle_temp_min == 205
        assert candidate.bed_temp_max == 65

    def test_blank_required_field_is_rejected(self):
        with pytest.raises(FilamentValidationError) as exc_info:
            validate_filament_payload(valid_payload(brand="   "))

        assert "brand" in exc_info.value.message
        assert exc_info.value.details == {"fields": ["brand"]}
        assert exc_info.value.status_code == 400

    def test_all_missing_required_fields_are_reported_together(self):
        """Test that one combined error lists every missing string field"""
        payload = valid_payload()
        del payload["brand"]
        payload["material"] = ""

        with pytest.raises(FilamentValidationError) as exc_info:
            validate_filament_payload(payload)

        assert exc_info.value.details == {"fields": ["brand", "material"]}
        assert exc_info.value.message == "Missing required fields: brand, material"

    def test_non_string_required_field_is_rejected(self):
        with pytest.raises(FilamentValidationError) as exc_info:
            validate_filament_payload(valid_payload(product_name=42))

        assert exc_info.value.details == {"fields": ["product_name"]}

    def test_non_numeric_temperature_names_the_field(self):
        with pytest.raises(FilamentValidationError) as exc_info:
            validate_filament_payload(valid_payload(nozzle_temp_min="abc"))

        assert exc_info.value.message == "Field nozzle_temp_min must be a number"

    def test_first_non_numeric_temperature_is_reported(self):
        """Test that checking stops at the first bad temperature field"""
        payload = valid_payload(nozzle_temp_max="hot", bed_temp_min="warm")

        with pytest.raises(FilamentValidationError) as exc_info:
            validate_filament_payload(payload)

        assert exc_info.value.details == {"fields": ["nozzle_temp_max"]}

    def test_missing_temperature_is_rejected(self):
        payload = valid_payload()
        del payload["bed_temp_max"]

        with pytest.raises(FilamentValidationError) as exc_info:
            validate_filament_payload(payload)

        assert "bed_temp_max" in exc_info.value.message

    def test_required_fields_are_checked_before_temperatures(self):
        """Test that a missing brand wins over a non-numeric bed_temp_min"""
        payload = valid_payload(bed_temp_min="abc")
        del payload["brand"]

        with pytest.raises(FilamentValidationError) as exc_info:
            validate_filament_payload(payload)

        assert exc_info.value.details == {"fields": ["brand"]}
        assert "Missing required fields" in exc_info.value.message

    @pytest.mark.parametrize("payload", [None, [], "brand=X", 42])
    def test_non_object_payload_is_rejected(self, payload):
        with pytest.raises(FilamentValidationError):
            validate_filament_payload(payload)

    def test_null_optional_strings_get_defaults(self):
        candidate = validate_filament_payload(valid_payload(color=None, special_type=None, notes=None))

        assert candidate.color is None
        assert candidate.special_type is None
        assert candidate.notes == ""

    def test_extra_keys_are_ignored(self):
        candidate = validate_filament_payload(valid_payload(id=99, hacked=True))

        assert "id" not in candidate.model_dump()
        assert "hacked" not in candidate.model_dump()

    def test_non_object_payload_has_no_field_details(self):
        with pytest.raises(FilamentValidationError) as exc_info:
            validate_filament_payload(["brand"])

        assert exc_info.value.message == "Request body must be a JSON object"
        assert exc_info.value.details is None


class TestParseNumber:
    """Test temperature coercion for new filaments"""

    @pytest.mark.parametrize("value,expected", [
        (200, 200),
        (200.0, 200),
        (200.5, 200.5),
        ("200", 200),
        ("1e2", 100),
        (" 215.0 ", 215),
    ])
    def test_numbers(self, value, expected):
        result = parse_number(value)

        assert result == expected
        assert type(result) is type(expected)

    @pytest.mark.parametrize("value", [None, "", "abc", True, "nan", "inf", float("inf"), "1_000", "2_00", {}, [200]])
    def test_not_numbers(self, value):
        assert parse_number(value) is None


class TestNextFilamentId:
    """Test id assignment"""

    def test_empty_collection_starts_at_one(self):
        assert next_filament_id([]) == 1

    def test_max_plus_one_even_with_gaps(self):
        filaments = [
            Filament(id=3, brand="A", product_name="a", material="PLA"),
            Filament(id=10, brand="B", product_name="b", material="PLA"),
            Filament(id=7, brand="C", product_name="c", material="PLA"),
        ]

        assert next_filament_id(filaments) == 11


class TestCreateFilament:
    """Test the append read-modify-write cycle"""

    def test_create_assigns_id_and_persists(self, store, catalog_path):
        filament = create_filament(store, valid_payload())

        assert filament.id == 1
        stored = json.loads(catalog_path.read_text(encoding="utf-8"))
        assert stored["filaments"] == [{
            "id": 1,
            "brand": "X",
            "product_name": "Y",
            "material": "PLA",
            "color": None,
            "nozzle_temp_min": 200,
            "nozzle_temp_max": 220,
            "bed_temp_min": 50,
            "bed_temp_max": 60,
            "special_type": None,
            "notes": "",
        }]
        assert stored["materials"][0]["name"] == "PLA"

    def test_sequential_appends_yield_consecutive_ids(self, store):
        """Test that N appends on an empty catalog produce ids 1..N"""
        created = [create_filament(store, valid_payload(product_name=f"P{i}")) for i in range(5)]

        assert [f.id for f in created] == [1, 2, 3, 4, 5]
        assert [f.id for f in store.load().filaments] == [1, 2, 3, 4, 5]

    def test_id_follows_highest_existing_id(self, store):
        document = store.load()
        document.filaments.append(Filament(id=41, brand="A", product_name="a", material="PLA"))
        store.save(document)

        assert create_filament(store, valid_payload()).id == 42

    def test_validation_error_leaves_document_unchanged(self, store, catalog_path):
        before = catalog_path.read_bytes()

        with pytest.raises(FilamentValidationError):
            create_filament(store, valid_payload(nozzle_temp_min="abc"))

        assert catalog_path.read_bytes() == before

    def test_unknown_material_is_allowed_by_default(self, store):
        filament = create_filament(store, valid_payload(material="Unobtainium"))

        assert filament.material == "Unobtainium"

    def test_unknown_material_rejected_when_enforced(self, store, catalog_path):
        before = catalog_path.read_bytes()

        with pytest.raises(FilamentValidationError) as exc_info:
            create_filament(store, valid_payload(material="Unobtainium"), enforce_material_reference=True)

        assert exc_info.value.details == {"fields": ["material"]}
        assert catalog_path.read_bytes() == before

    def test_known_material_accepted_when_enforced(self, store):
        filament = create_filament(store, valid_payload(material="PLA"), enforce_material_reference=True)

        assert filament.id == 1

    def test_corrupt_document_raises_storage_error(self, store, catalog_path):
        catalog_path.write_text("{not json", encoding="utf-8")

        with pytest.raises(CatalogStorageError) as exc_info:
            create_filament(store, valid_payload())

        assert exc_info.value.message == "Could not save filament. Please try again later."
        assert isinstance(exc_info.value.__cause__, CatalogStorageError)
        assert catalog_path.read_text(encoding="utf-8") == "{not json"

    def test_missing_document_raises_storage_error(self, tmp_path):
        store = CatalogStore(tmp_path / "missing.json")

        with pytest.raises(CatalogStorageError):
            create_filament(store, valid_payload())

        assert not (tmp_path / "missing.json").exists()

    def test_write_failure_raises_storage_error(self, store, catalog_path, monkeypatch):
        before = catalog_path.read_bytes()

        def failing_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("app.db.catalog_store.os.replace", failing_replace)

        with pytest.raises(CatalogStorageError):
            create_filament(store, valid_payload())

        assert catalog_path.read_bytes() == before

    def test_serialized_concurrent_appends_get_distinct_ids(self, catalog_path, monkeypatch):
        """Test that two overlapping appends both persist when writes are serialized"""
        store = CatalogStore(catalog_path, serialize_writes=True)
        original_load = store.load

        def slow_load():
            document = original_load()
            time.sleep(0.05)
            return document

        monkeypatch.setattr(store, "load", slow_load)
        created = []

        def append(brand):
            created.append(create_filament(store, valid_payload(brand=brand)).id)

        threads = [threading.Thread(target=append, args=(brand,)) for brand in ("A", "B")]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5)

        assert sorted(created) == [1, 2]
        stored = json.loads(catalog_path.read_text(encoding="utf-8"))
        assert sorted(f["id"] for f in stored["filaments"]) == [1, 2]
        assert sorted(f["brand"] for f in stored["filaments"]) == ["A", "B"]


class TestCheckCatalog:
    """Test the catalog integrity report"""

    def test_clean_catalog(self):
        document = CatalogDocument(
            materials=[Material(name="PLA")],
            filaments=[Filament(id=1, brand="A", product_name="a", material="PLA",
                                nozzle_temp_min=200, nozzle_temp_max=220)],
        )

        assert check_catalog(document) == []

    def test_reports_problems(self):
        document = CatalogDocument(
            materials=[Material(name="PLA", bed_temp_min=60, bed_temp_max=25)],
            filaments=[
                Filament(id=1, brand="A", product_name="a", material="PLA"),
                Filament(id=1, brand="B", product_name="b", material="PLA"),
                Filament(id=0, brand="C", product_name="c", material="Nylon",
                         nozzle_temp_min=250, nozzle_temp_max=240),
            ],
        )

        problems = check_catalog(document)

        assert "Filament 1 (B b): duplicate id" in problems
        assert "Filament 0 (C c): id must be a positive integer" in problems
        assert "Filament 0 (C c): unknown material 'Nylon'" in problems
        assert "Filament 0 (C c): nozzle temperature range 250-240 is inverted" in problems
        assert "Material PLA: bed temperature range 60-25 is inverted" in problems
        assert len(problems) == 5
