from typing import List, Optional

from pydantic import BaseModel, Field

# Explicit field lists for every CSV record shape; exports never discover
# columns from the model at runtime.
HEADERS = {
    "entries": [
        "entry_id", "user_id", "user_name", "method", "path",
        "status_code", "ip_address", "payload", "created_at",
    ],
    "entries_summary": ["entry_id", "method", "path", "status_code", "created_at"],
}


class MaskRequest(BaseModel):
    data: Optional[str] = None
    mask_pattern: Optional[str] = Field(default=None, min_length=1)
    sensitive_names: Optional[List[str]] = None


class MaskResponse(BaseModel):
    masked: Optional[str] = None
