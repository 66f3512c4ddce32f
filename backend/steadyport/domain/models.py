from pydantic import BaseModel
from typing import Any, Dict, List, Optional


# --- API Response Models (for OpenAPI schema generation) ---

class HealthResponse(BaseModel):
    status: str
    version: str
    state: str


class RuntimeResponse(BaseModel):
    host: str
    backend_port: int
    peer_port: Optional[int] = None
    data_dir: str
    allowed_origins: List[str]
    secrets: List[str]  # names only


class DocumentResponse(BaseModel):
    path: str
    document: Dict[str, Any]


class StatusResponse(BaseModel):
    status: str
