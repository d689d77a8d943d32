import pandas as pd

from fermion.constants import F_ENTRY_ID, F_METHOD, F_STATUS


def basic_validations(df: pd.DataFrame) -> None:
    """Perform basic, non-fatal validations and normalisations on an input DataFrame.

    The function mutates the provided DataFrame in-place for fixable issues.

    Args:
        df: pandas.DataFrame loaded from source CSV with normalized column names.

    Raises:
        ValueError: if required key columns are missing.
    """
    required = [F_ENTRY_ID]
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required columns: {missing}")
    if F_STATUS in df.columns:
        # Non-fatal: out-of-range HTTP status codes are dropped
        df[F_STATUS] = pd.to_numeric(df[F_STATUS], errors="coerce")
        df.loc[~df[F_STATUS].between(100, 599), F_STATUS] = None
    if F_METHOD in df.columns:
        df[F_METHOD] = df[F_METHOD].str.upper()
