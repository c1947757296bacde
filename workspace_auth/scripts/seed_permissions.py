"""
Seed Permissions Script
Populates/updates the permissions table from the catalog.
The migration seeds the same rows; run this after changing descriptions.
"""

import logging

from supabase import Client

from workspace_auth.config.permissions_config import get_permission_seed_rows
from workspace_auth.database.supabase_client import get_supabase

logger = logging.getLogger(__name__)


def seed_permissions(supabase: Client) -> int:
    """Upsert every catalog permission by name; returns the number of rows written"""
    logger.info("Seeding permissions...")
    rows = get_permission_seed_rows()
    result = supabase.table("permissions")\
        .upsert(rows, on_conflict="name")\
        .execute()
    count = len(result.data or [])
    logger.info("Permissions seeded: %s rows", count)
    return count


def main():
    logging.basicConfig(level=logging.INFO)
    seed_permissions(get_supabase())


if __name__ == "__main__":
    main()
