"""File record request/response schemas."""
import uuid
from typing import Optional
from datetime import datetime
from fileshare.schemas.base import CamelModel, CamelORMModel


class FileRecordUpdate(CamelModel):
    """Patch body for PUT /update/{id}. Storage fields are not client-writable."""
    title: Optional[str] = None
    description: Optional[str] = None


class FileRecordResponse(CamelORMModel):
    id: uuid.UUID
    title: Optional[str] = None
    description: Optional[str] = None
    filename: str
    path: str
    uploaded_at: datetime
    original_name: Optional[str] = None
    mime_type: Optional[str] = None
    size_bytes: Optional[int] = None
