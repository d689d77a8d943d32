from datetime import date
from typing import Annotated, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from fermion.constants import SORTABLE_FIELDS
from fermion.exceptions import MaskDepthExceededError
from fermion.schemas import HEADERS, MaskRequest, MaskResponse
from .crud import get_entry, query_entries, to_entry_dict
from .database import get_db
from .masking import mask_row, mask_sensitive_data
from .utils import stream_csv

router = APIRouter()

SortField = Literal[tuple(SORTABLE_FIELDS)]


def validate_entry_filters(
    user_id: Optional[str] = None,
    method: Optional[str] = None,
    min_status: Annotated[Optional[int], Query(ge=100, le=599)] = None,
    max_status: Annotated[Optional[int], Query(ge=100, le=599)] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    sort_by: Optional[SortField] = None,
    descending: bool = False,
    then_by: Optional[SortField] = None,
    then_descending: bool = False,
    limit: Annotated[int, Query(gt=0, le=1000)] = 100,
    offset: Annotated[int, Query(ge=0)] = 0,
    summary: bool = False,
):
    """Validate and normalise the query parameters of the entries endpoint.

    Returns:
        dict: keyword arguments for `crud.build_entries_query`.
    """
    if min_status is not None and max_status is not None and min_status > max_status:
        raise HTTPException(status_code=422, detail="min_status cannot exceed max_status")
    if start_date and end_date and start_date > end_date:
        raise HTTPException(status_code=422, detail="start_date cannot exceed end_date")
    if then_by is not None and sort_by is None:
        raise HTTPException(status_code=422, detail="then_by requires sort_by")
    return {
        "user_id": user_id,
        "method": method,
        "min_status": min_status,
        "max_status": max_status,
        "start_date": start_date,
        "end_date": end_date,
        "sort_by": sort_by,
        "descending": descending,
        "then_by": then_by,
        "then_descending": then_descending,
        "limit": limit,
        "offset": offset,
        "summary": summary,
    }


@router.get("/health")
def health():
    return {"status": "ok"}


@router.post("/mask", response_model=MaskResponse)
def mask(request: MaskRequest):
    """Mask sensitive values of a JSON (or JSON-like) string.

    Args:
        request: text to mask plus optional pattern / sensitive names.

    Returns:
        MaskResponse: the masked text.
    """
    try:
        masked = mask_sensitive_data(request.data, request.mask_pattern, request.sensitive_names)
    except MaskDepthExceededError as exc:
        raise HTTPException(status_code=422, detail=exc.to_dict())
    return MaskResponse(masked=masked)


@router.get("/entries")
def list_entries(
    filters: dict = Depends(validate_entry_filters),
    mask_pii: bool = True,
    db: Session = Depends(get_db),
):
    """Return a CSV extract of audit entries.

    Args:
        filters: dependency-provided dict of filter / sort / paging values.
        mask_pii: whether to mask payload secrets, names and IPs (default True).
        db: DB session dependency.

    Returns:
        StreamingResponse: CSV with HEADERS['entries'] or HEADERS['entries_summary'].
    """
    rows = query_entries(db, **filters)
    if mask_pii:
        rows = [mask_row(row) for row in rows]
    if filters["summary"]:
        return stream_csv(rows, HEADERS["entries_summary"], "entries_summary.csv")
    return stream_csv(rows, HEADERS["entries"], "entries.csv")


@router.get("/entries/{entry_id}")
def entry_detail(entry_id: str, mask_pii: bool = True, db: Session = Depends(get_db)):
    """Return a single-entry CSV row (masked by default).

    Raises:
        HTTPException: 404 when the entry does not exist.
    """
    entry = get_entry(db, entry_id)
    if not entry:
        raise HTTPException(status_code=404, detail="Entry not found")
    row = to_entry_dict(entry)
    if mask_pii:
        row = mask_row(row)
    return stream_csv([row], HEADERS["entries"], f"entry_{entry_id}.csv")
