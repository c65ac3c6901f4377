"""Files API routes: upload, list, download, update, delete."""
import logging
from uuid import UUID
from fastapi import APIRouter, Depends, Form, HTTPException, UploadFile, File as FastAPIFile
from fastapi.responses import FileResponse
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fileshare.config import Settings, get_settings
from fileshare.database import get_db
from fileshare.exceptions import BlobTooLargeError, InvalidBlobNameError
from fileshare.models.file_record import FileRecord
from fileshare.schemas.file import FileRecordResponse, FileRecordUpdate
from fileshare.services.file_storage import FileStorageService, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(tags=["files"])


@router.post("/upload", response_model=FileRecordResponse, status_code=201)
async def upload_file(
    file: UploadFile | None = FastAPIFile(None),
    title: str | None = Form(None),
    description: str | None = Form(None),
    db: AsyncSession = Depends(get_db),
    storage: FileStorageService = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    """Store the uploaded bytes and create a file record."""
    if file is None or not file.filename:
        logger.warning("Upload rejected: no file part")
        raise HTTPException(status_code=400, detail="No file uploaded")

    try:
        blob = await storage.save(file, file.filename, settings.MAX_UPLOAD_BYTES)
    except BlobTooLargeError as e:
        logger.warning("Upload rejected: %s", e)
        raise HTTPException(status_code=413, detail=str(e))
    except OSError:
        logger.exception("Error writing blob for %s", file.filename)
        raise HTTPException(status_code=500, detail="Error saving file")

    record = FileRecord(
        title=title,
        description=description,
        filename=blob.filename,
        path=blob.path,
        original_name=file.filename,
        mime_type=file.content_type,
        size_bytes=blob.size_bytes,
    )
    db.add(record)
    try:
        await db.commit()
        await db.refresh(record)
    except SQLAlchemyError:
        await db.rollback()
        # The blob stays on disk without a record.
        logger.exception("Error saving file record, blob %s is orphaned", blob.filename)
        raise HTTPException(status_code=500, detail="Error saving file")

    return FileRecordResponse.model_validate(record)


@router.get("/files", response_model=list[FileRecordResponse])
async def list_files(db: AsyncSession = Depends(get_db)):
    """List every file record in storage order."""
    try:
        result = await db.execute(select(FileRecord))
        records = result.scalars().all()
    except SQLAlchemyError:
        logger.exception("Error fetching files")
        raise HTTPException(status_code=500, detail="Error fetching files")
    return [FileRecordResponse.model_validate(r) for r in records]


@router.get("/files/{file_id}", response_model=FileRecordResponse)
async def get_file_record(
    file_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Get file metadata by ID."""
    try:
        record = await db.get(FileRecord, file_id)
    except SQLAlchemyError:
        logger.exception("Error fetching file record %s", file_id)
        raise HTTPException(status_code=500, detail="Error fetching file")
    if not record:
        raise HTTPException(status_code=404, detail="File record not found")
    return FileRecordResponse.model_validate(record)


@router.get("/download/{filename}")
async def download_file(
    filename: str,
    storage: FileStorageService = Depends(get_storage),
):
    """Stream a stored blob by its storage filename."""
    try:
        found = storage.exists(filename)
    except InvalidBlobNameError:
        logger.warning("Download rejected: invalid filename %r", filename)
        raise HTTPException(status_code=400, detail="Invalid filename")
    if not found:
        raise HTTPException(status_code=404, detail="File not found")

    return FileResponse(
        path=storage.resolve(filename),
        filename=filename,
        media_type="application/octet-stream",
    )


@router.put("/update/{file_id}", response_model=FileRecordResponse)
async def update_file(
    file_id: UUID,
    body: FileRecordUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Update a file record. Only provided fields are updated."""
    try:
        record = await db.get(FileRecord, file_id)
        if not record:
            raise HTTPException(status_code=400, detail="File record not found")

        update_data = body.model_dump(exclude_unset=True)
        for key, value in update_data.items():
            setattr(record, key, value)

        await db.commit()
        await db.refresh(record)
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Error updating file record %s", file_id)
        raise HTTPException(status_code=400, detail="Error updating file")

    return FileRecordResponse.model_validate(record)


@router.delete("/delete/{file_id}", response_model=FileRecordResponse)
async def delete_file(
    file_id: UUID,
    db: AsyncSession = Depends(get_db),
    storage: FileStorageService = Depends(get_storage),
    settings: Settings = Depends(get_settings),
):
    """Delete a file record and return its last content.

    The blob is kept unless DELETE_BLOBS_ON_RECORD_DELETE is set, in which
    case it is removed once the record delete has committed. A blob that
    cannot be removed is left orphaned and logged.
    """
    try:
        record = await db.get(FileRecord, file_id)
        if not record:
            raise HTTPException(status_code=400, detail="File record not found")
        snapshot = FileRecordResponse.model_validate(record)

        await db.delete(record)
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception("Error deleting file record %s", file_id)
        raise HTTPException(status_code=400, detail="Error deleting file")

    if settings.DELETE_BLOBS_ON_RECORD_DELETE:
        try:
            await storage.delete(snapshot.filename)
        except (OSError, InvalidBlobNameError):
            logger.exception("Record %s deleted but blob %s is orphaned", file_id, snapshot.filename)

    logger.info("Deleted file record %s (%s)", file_id, snapshot.filename)
    return snapshot
