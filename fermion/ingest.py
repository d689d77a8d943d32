import argparse
import logging

import pandas as pd
from sqlalchemy import select
from sqlalchemy.orm import Session

from .config import configure_logging
from .database import SessionLocal, init_db
from .models import AuditEntry, IngestMetadata
from .utils import compute_file_hash
from .validate import basic_validations
from fermion.constants import (
    RENAME_MAP,
    NORMALIZED_FIELDS,
    F_ENTRY_ID,
    F_STATUS,
    F_CREATED_AT,
    F_SOURCE_PATH,
    F_TOTAL_ROWS,
    F_LOADED_ROWS,
    F_FILE_HASH,
)

logger = logging.getLogger(__name__)


def load_dataframe(path: str) -> pd.DataFrame:
    # keep payloads and ids as text; only status and timestamps are typed
    df = pd.read_csv(path, dtype=str, keep_default_na=False, na_values=[""])
    df = df.rename(columns=RENAME_MAP)
    if F_CREATED_AT in df.columns:
        df[F_CREATED_AT] = pd.to_datetime(df[F_CREATED_AT], errors="coerce", utc=True)
    basic_validations(df)
    return df


def _clean(value):
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if value is None or pd.isna(value):
        return None
    return value


def ingest_csv(db: Session, csv_path: str) -> int:
    """Load audit entries from a CSV file; entries already stored are skipped.

    Returns:
        int: number of new entries written.
    """
    file_hash = compute_file_hash(csv_path)
    df = load_dataframe(csv_path)
    total_rows = len(df)

    existing_ids = set(db.execute(select(AuditEntry.entry_id)).scalars().all())
    entry_cols = [c for c in NORMALIZED_FIELDS if c in df.columns]
    entry_df = df[entry_cols].drop_duplicates(subset=[F_ENTRY_ID])
    entry_df = entry_df[~entry_df[F_ENTRY_ID].isin(existing_ids)]

    entries = []
    for rec in entry_df.to_dict("records"):
        rec = {k: _clean(v) for k, v in rec.items()}
        if rec.get(F_STATUS) is not None:
            rec[F_STATUS] = int(rec[F_STATUS])
        entries.append(AuditEntry(**rec))

    if entries:
        db.add_all(entries)

    db.add(IngestMetadata(
        **{
            F_SOURCE_PATH: csv_path,
            F_TOTAL_ROWS: total_rows,
            F_LOADED_ROWS: len(entries),
            F_FILE_HASH: file_hash,
        }
    ))
    db.commit()
    logger.info("Ingest complete. Rows in: %d, entries loaded: %d", total_rows, len(entries))
    return len(entries)


def run(csv_path: str) -> int:
    init_db()
    with SessionLocal() as session:
        return ingest_csv(session, csv_path=csv_path)


if __name__ == "__main__":
    configure_logging()
    parser = argparse.ArgumentParser(description="Ingest audit entries CSV file")
    parser.add_argument("--csv", required=True, help="Path to audit entries CSV file")
    args = parser.parse_args()
    run(args.csv)
