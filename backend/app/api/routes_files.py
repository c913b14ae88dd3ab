from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel
from typing import List

from backend.app.api.dependencies import get_engine, raise_for_result
from backend.app.services.progress.models import FileRecord, RawFile
from backend.app.services.progress.tracker import LifecycleEngine
from backend.app.services.view.formatting import format_file_size

router = APIRouter(tags=["Files"])


class IntakeBody(BaseModel):
    files: List[RawFile]


def to_response(record: FileRecord) -> dict:
    data = record.model_dump(mode="json")
    data["size_label"] = format_file_size(record.size)
    return data


@router.post("")
async def intake_files(body: IntakeBody, engine: LifecycleEngine = Depends(get_engine)):
    """
    Register file metadata and start simulated uploads.
    Returns immediately; poll GET /files for progress.
    """
    ids = engine.intake(body.files)
    return {"ids": ids, "total_uploaded": len(ids)}


@router.post("/upload")
async def upload_files(
    files: list[UploadFile] = File(...),
    engine: LifecycleEngine = Depends(get_engine)
):
    """
    Multipart variant used by the browser file picker.
    Only the name, size and content type of each file are taken.
    """
    raw_files = [
        RawFile(
            name=file.filename or "",
            size=file.size or 0,
            mime_type=file.content_type or ""
        )
        for file in files
        if file.filename
    ]
    ids = engine.intake(raw_files)
    return {"ids": ids, "total_uploaded": len(ids)}


@router.get("")
async def list_files(engine: LifecycleEngine = Depends(get_engine)):
    return [to_response(record) for record in engine.snapshot()]


@router.get("/status")
async def get_status(engine: LifecycleEngine = Depends(get_engine)):
    """Flags that gate the upload and return buttons."""
    return {
        "is_uploading": engine.is_uploading(),
        "ready_to_exit": engine.is_ready_to_exit(),
        "total": len(engine)
    }


@router.get("/{file_id}")
async def get_file(file_id: str, engine: LifecycleEngine = Depends(get_engine)):
    record = engine.get(file_id)
    if record is None:
        raise HTTPException(status_code=404, detail="File not found")
    return to_response(record)


@router.post("/{file_id}/process")
async def process_file(file_id: str, engine: LifecycleEngine = Depends(get_engine)):
    result = engine.begin_processing(file_id)
    raise_for_result(result)
    return result.model_dump(mode="json")


@router.delete("/{file_id}")
async def delete_file(file_id: str, engine: LifecycleEngine = Depends(get_engine)):
    result = engine.delete(file_id)
    raise_for_result(result)
    return result.model_dump(mode="json")
