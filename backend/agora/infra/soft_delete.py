from __future__ import annotations

from typing import Any


async def soft_delete(conn: Any, table: str, id_col: str, row_id: Any):
    """Set deleted_at = NOW() if not already set and return the tombstoned row.

    This is intentionally minimal SQL string building; callers must ensure
    `table` and `id_col` are trusted names (from constants) to avoid SQL injection.
    Returns None when the row is missing or was already deleted.
    """
    q = f"UPDATE {table} SET deleted_at = NOW() WHERE {id_col} = $1 AND deleted_at IS NULL RETURNING *"
    return await conn.fetchrow(q, row_id)
