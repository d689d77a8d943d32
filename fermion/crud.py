from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from fermion.constants import F_CREATED_AT, SORTABLE_FIELDS
from .models import AuditEntry
from .query import order_by_if, select_if, skip_if, take_if, then_by_if, where_if
from .schemas import HEADERS
from .utils import sa_to_dict

SORT_COLUMNS = {name: getattr(AuditEntry, name) for name in SORTABLE_FIELDS}
FULL_COLUMNS = [getattr(AuditEntry, name) for name in HEADERS["entries"]]
SUMMARY_COLUMNS = [getattr(AuditEntry, name) for name in HEADERS["entries_summary"]]


def build_entries_query(
    user_id: Optional[str] = None,
    method: Optional[str] = None,
    min_status: Optional[int] = None,
    max_status: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    sort_by: Optional[str] = None,
    descending: bool = False,
    then_by: Optional[str] = None,
    then_descending: bool = False,
    limit: Optional[int] = None,
    offset: int = 0,
    summary: bool = False,
) -> Select:
    """Compose the audit-entry SELECT from optional filters.

    Args:
        user_id: Only entries of this user.
        method: HTTP method (case-insensitive).
        min_status: Minimum status code (inclusive).
        max_status: Maximum status code (inclusive).
        start_date: Inclusive start date on created_at.
        end_date: Exclusive end date on created_at.
        sort_by: Primary sort field, one of SORT_COLUMNS.
        descending: Primary sort direction.
        then_by: Tie-break sort field, one of SORT_COLUMNS.
        then_descending: Tie-break sort direction.
        limit: Max rows to return.
        offset: Row offset for pagination.
        summary: Project onto the summary columns instead of the full record.

    Returns:
        Select: statement yielding column mappings named after HEADERS.
    """
    stmt = select(AuditEntry)
    stmt = where_if(stmt, user_id is not None, AuditEntry.user_id == user_id)
    stmt = where_if(stmt, method is not None, AuditEntry.method == (method or "").upper())
    stmt = where_if(stmt, min_status is not None, AuditEntry.status_code >= min_status)
    stmt = where_if(stmt, max_status is not None, AuditEntry.status_code <= max_status)
    stmt = where_if(stmt, start_date is not None, AuditEntry.created_at >= start_date)
    stmt = where_if(stmt, end_date is not None, AuditEntry.created_at < end_date)
    stmt = order_by_if(stmt, sort_by is not None, SORT_COLUMNS.get(sort_by), ascending=not descending)
    stmt = then_by_if(stmt, then_by is not None, SORT_COLUMNS.get(then_by), ascending=not then_descending)
    stmt = skip_if(stmt, offset > 0, offset)
    stmt = take_if(stmt, limit is not None, limit)
    return select_if(stmt, summary, SUMMARY_COLUMNS, FULL_COLUMNS)


def _normalize(row: dict) -> dict:
    value = row.get(F_CREATED_AT)
    if isinstance(value, datetime):
        row[F_CREATED_AT] = value.isoformat()
    return row


def query_entries(db: Session, **filters) -> List[dict]:
    """Run `build_entries_query` and return plain dict rows."""
    stmt = build_entries_query(**filters)
    return [_normalize(dict(row)) for row in db.execute(stmt).mappings().all()]


def get_entry(db: Session, entry_id: str) -> Optional[AuditEntry]:
    return db.get(AuditEntry, entry_id)


def to_entry_dict(entry: AuditEntry) -> dict:
    """Convert an AuditEntry to a dict matching HEADERS['entries'] order."""
    return _normalize(sa_to_dict(entry, HEADERS["entries"]))
