"""
Check the filament catalog for integrity problems

This script checks:
1. The catalog file can be loaded
2. Filament ids are positive and unique
3. Every filament points at a known material
4. No temperature range is inverted

Run with: python scripts/check_catalog.py [path/to/filaments.json]
"""
import sys
from pathlib import Path

# Add backend directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.config import settings
from app.db.catalog_store import CatalogStore
from app.exceptions import CatalogStorageError
from app.services.filament_filter import filter_options
from app.services.filament_service import check_catalog, next_filament_id


def main(argv) -> int:
    path = argv[1] if len(argv) > 1 else settings.FILAMENT_DATA_PATH
    store = CatalogStore(path)

    print("=" * 60)
    print(f"Filament Catalog Check: {path}")
    print("=" * 60)

    try:
        document = store.load()
    except CatalogStorageError as e:
        cause = e.__cause__ or e
        print(f"\n❌ Could not load catalog: {cause}")
        return 2

    options = filter_options(document)
    print(f"\n   Materials: {len(document.materials)}")
    print(f"   Filaments: {len(document.filaments)}")
    print(f"   Brands:    {', '.join(options['brands']) or '-'}")
    print(f"   Colors:    {', '.join(options['colors']) or '-'}")
    print(f"   Next id:   {next_filament_id(document.filaments)}")

    problems = check_catalog(document)
    print()
    if not problems:
        print("✅ No problems found.")
        return 0

    print(f"⚠️  Found {len(problems)} problem(s):")
    for problem in problems:
        print(f"   - {problem}")
    return 1


if __name__ == "__main__":
    sys.exit(main(sys.argv))
