# --- Masking defaults ---
DEFAULT_MASK_PATTERN = "***MASKED***"
DEFAULT_SENSITIVE_NAMES = (
    "Password",
    "Token",
    "Secret",
    "ApiKey",
    "RecoveryKey",
    "Key",
    "Credential",
    "Ssn",
    "Credit",
    "Card",
)
DEFAULT_MAX_MASK_DEPTH = 200

# --- Source dataset column names (raw CSV headers) ---
COL_ENTRY_ID = "Entry Id"
COL_USER_ID = "User Id"
COL_USER_NAME = "User Name"
COL_METHOD = "Method"
COL_PATH = "Path"
COL_STATUS = "Status Code"
COL_IP = "Client IP Address"
COL_PAYLOAD = "Payload"
COL_CREATED = "Captured At"

# --- Normalized field names (internal schema) ---
F_ENTRY_ID = "entry_id"
F_USER_ID = "user_id"
F_USER_NAME = "user_name"
F_METHOD = "method"
F_PATH = "path"
F_STATUS = "status_code"
F_IP = "ip_address"
F_PAYLOAD = "payload"
F_CREATED_AT = "created_at"
F_FILE_HASH = "file_hash"
F_SOURCE_PATH = "source_path"
F_TOTAL_ROWS = "total_rows"
F_LOADED_ROWS = "loaded_rows"

NORMALIZED_FIELDS = [
    F_ENTRY_ID,
    F_USER_ID,
    F_USER_NAME,
    F_METHOD,
    F_PATH,
    F_STATUS,
    F_IP,
    F_PAYLOAD,
    F_CREATED_AT,
]

# Mapping raw CSV header -> normalized internal field
RENAME_MAP = {
    COL_ENTRY_ID: F_ENTRY_ID,
    COL_USER_ID: F_USER_ID,
    COL_USER_NAME: F_USER_NAME,
    COL_METHOD: F_METHOD,
    COL_PATH: F_PATH,
    COL_STATUS: F_STATUS,
    COL_IP: F_IP,
    COL_PAYLOAD: F_PAYLOAD,
    COL_CREATED: F_CREATED_AT,
}

# Columns accepted by the `sort_by` / `then_by` query parameters
SORTABLE_FIELDS = [F_CREATED_AT, F_STATUS, F_USER_ID, F_PATH]

# --- Table names ---
TBL_AUDIT_ENTRIES = "audit_entries"
TBL_INGEST_METADATA = "ingest_metadata"

__all__ = [
    "DEFAULT_MASK_PATTERN",
    "DEFAULT_SENSITIVE_NAMES",
    "DEFAULT_MAX_MASK_DEPTH",
    "COL_ENTRY_ID",
    "COL_USER_ID",
    "COL_USER_NAME",
    "COL_METHOD",
    "COL_PATH",
    "COL_STATUS",
    "COL_IP",
    "COL_PAYLOAD",
    "COL_CREATED",
    "F_ENTRY_ID",
    "F_USER_ID",
    "F_USER_NAME",
    "F_METHOD",
    "F_PATH",
    "F_STATUS",
    "F_IP",
    "F_PAYLOAD",
    "F_CREATED_AT",
    "F_FILE_HASH",
    "F_SOURCE_PATH",
    "F_TOTAL_ROWS",
    "F_LOADED_ROWS",
    "NORMALIZED_FIELDS",
    "RENAME_MAP",
    "SORTABLE_FIELDS",
    "TBL_AUDIT_ENTRIES",
    "TBL_INGEST_METADATA",
]
