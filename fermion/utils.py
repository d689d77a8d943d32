import csv
import hashlib
import io
from typing import Iterable, Sequence

from fastapi.responses import StreamingResponse
from sqlalchemy.inspection import inspect


def sa_to_dict(obj, fields: Sequence[str] | None = None) -> dict:
    """Convert a SQLAlchemy ORM object to a plain dict.

    Args:
        obj: SQLAlchemy ORM instance to convert.
        fields: Optional explicit field list; only these keys are returned, in
            this order. Defaults to every mapped column.

    Returns:
        dict: Mapping of column attribute name -> value.
    """
    if fields is None:
        fields = [c.key for c in inspect(obj).mapper.column_attrs]
    return {name: getattr(obj, name) for name in fields}


def compute_file_hash(file_path: str) -> str:
    h = hashlib.sha256()
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            h.update(chunk)
    return h.hexdigest()


def stream_csv(dict_rows: Iterable[dict], headers: Sequence[str], filename: str) -> StreamingResponse:
    """Stream an iterable of dict rows as a CSV HTTP response.

    Args:
        dict_rows: Iterable of dict-like rows (order implied by `headers`).
        headers: Column names (fieldnames for csv.DictWriter).
        filename: Suggested filename included in Content-Disposition header.

    Returns:
        fastapi.responses.StreamingResponse streaming CSV text.
    """
    def iter_rows():
        buf = io.StringIO()
        writer = csv.DictWriter(buf, fieldnames=list(headers), extrasaction="ignore")
        writer.writeheader()
        yield buf.getvalue()
        buf.seek(0); buf.truncate(0)
        for row in dict_rows:
            writer.writerow(row)
            yield buf.getvalue()
            buf.seek(0); buf.truncate(0)

    return StreamingResponse(
        iter_rows(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )
