"""
Filament Service

Validates and persists new filaments in the catalog document, and checks the
catalog for integrity problems.

Appending is a single read-modify-write cycle:
    validate payload -> load document -> assign id -> append -> save document
Validation happens before any I/O. If anything fails the document on disk is
left unchanged.
"""
from typing import Any, Iterable, List, Optional

from pydantic import ValidationError

from app.db.catalog_store import CatalogStore
from app.exceptions import CatalogStorageError, FilamentValidationError
from app.logging_config import audit_log, get_logger
from app.schemas.catalog import CatalogDocument, Filament
from app.schemas.filament import FilamentCreate

logger = get_logger(__name__)

SAVE_FAILED_MESSAGE = "Could not save filament. Please try again later."


def validate_filament_payload(payload: Any) -> FilamentCreate:
    """
    Validate a raw request body and normalize it into a FilamentCreate.

    Missing required strings are reported before non-numeric temperatures;
    see FilamentCreate for the rules.

    Raises:
        FilamentValidationError: describing the offending field(s)
    """
    try:
        return FilamentCreate.model_validate(payload)
    except ValidationError as e:
        error = e.errors()[0]
        fields = (error.get("ctx") or {}).get("fields")
        raise FilamentValidationError(
            error["msg"],
            details={"fields": list(fields)} if fields else None,
        ) from e


def next_filament_id(filaments: Iterable[Filament]) -> int:
    """max(existing ids) + 1, or 1 for an empty collection"""
    return max((f.id for f in filaments), default=0) + 1


def create_filament(
    store: CatalogStore,
    payload: Any,
    enforce_material_reference: bool = False,
    ip_address: Optional[str] = None,
) -> Filament:
    """
    Validate a filament and append it to the catalog

    Args:
        store: Catalog storage
        payload: Raw request body (decoded JSON)
        enforce_material_reference: Reject materials that are not in the
            catalog's material list
        ip_address: Client address, recorded in the audit log

    Returns:
        The persisted filament, including its new id

    Raises:
        FilamentValidationError: invalid payload (nothing is read or written)
        CatalogStorageError: the document could not be read or written
    """
    candidate = validate_filament_payload(payload)

    with store.write_lock():
        try:
            document = store.load()
        except CatalogStorageError as e:
            raise CatalogStorageError(SAVE_FAILED_MESSAGE) from e

        if enforce_material_reference and candidate.material not in {m.name for m in document.materials}:
            raise FilamentValidationError(
                f"Unknown material: {candidate.material}",
                details={"fields": ["material"]},
            )

        filament = candidate.to_filament(next_filament_id(document.filaments))
        document.filaments.append(filament)

        try:
            store.save(document)
        except CatalogStorageError as e:
            raise CatalogStorageError(SAVE_FAILED_MESSAGE) from e

    logger.info(
        f"Filament created: {filament.brand} {filament.product_name}",
        extra={"filament_id": filament.id, "material": filament.material},
    )
    audit_log(
        "FILAMENT_CREATED",
        resource_type="filament",
        resource_id=filament.id,
        details={
            "brand": filament.brand,
            "product_name": filament.product_name,
            "material": filament.material,
        },
        ip_address=ip_address,
    )
    return filament


def check_catalog(document: CatalogDocument) -> List[str]:
    """
    Report integrity problems in a catalog document.

    Checks:
    - filament ids are positive and unique
    - each filament's material names a known Material (the service itself
      does not enforce this unless ENFORCE_MATERIAL_REFERENCE is set)
    - temperature ranges are not inverted (min > max)

    Returns:
        Human readable problem descriptions; empty when the catalog is clean
    """
    problems = []
    material_names = {m.name for m in document.materials}
    seen_ids = set()

    for f in document.filaments:
        label = f"Filament {f.id} ({f.brand} {f.product_name})"
        if f.id <= 0:
            problems.append(f"{label}: id must be a positive integer")
        if f.id in seen_ids:
            problems.append(f"{label}: duplicate id")
        seen_ids.add(f.id)

        if f.material not in material_names:
            problems.append(f"{label}: unknown material '{f.material}'")

        for kind in ("nozzle", "bed"):
            low = getattr(f, f"{kind}_temp_min")
            high = getattr(f, f"{kind}_temp_max")
            if low is not None and high is not None and low > high:
                problems.append(f"{label}: {kind} temperature range {low}-{high} is inverted")

    for m in document.materials:
        for kind in ("nozzle", "bed"):
            low = getattr(m, f"{kind}_temp_min")
            high = getattr(m, f"{kind}_temp_max")
            if low is not None and high is not None and low > high:
                problems.append(f"Material {m.name}: {kind} temperature range {low}-{high} is inverted")

    return problems
