from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse
from pathlib import PurePosixPath
import mimetypes

from app.auth.dependencies import get_access_context
from app.exceptions import NotFoundError, StorageError
from app.policies import AccessContext, Operation, authorize_object
from app.storage import LocalBucket, get_bucket

router = APIRouter(prefix="/storage", tags=["Documents"])


@router.get("/{bucket_name}/{path:path}")
async def download_object(
    bucket_name: str,
    path: str,
    ctx: AccessContext = Depends(get_access_context),
    bucket: LocalBucket = Depends(get_bucket)
):
    """Serve an uploaded document to its owner or to staff."""
    authorize_object(ctx, bucket_name, path, Operation.SELECT)
    if bucket_name != bucket.name:
        raise NotFoundError("Object", f"{bucket_name}/{path}")
    try:
        local_path = bucket.local_path(path)
    except StorageError:
        raise NotFoundError("Object", f"{bucket_name}/{path}")

    file_name = PurePosixPath(path).name
    mime_type = mimetypes.guess_type(file_name)[0] or "application/octet-stream"
    return FileResponse(local_path, media_type=mime_type, filename=file_name)
