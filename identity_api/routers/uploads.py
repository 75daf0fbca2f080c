"""
Uploads router: images for avatars and community posts, plus PDF documents.

  POST   /uploads/image     → multipart "file", PNG/JPEG/GIF/WebP only, max 5 MB
  POST   /uploads/document  → multipart "file", PDF only, max 10 MB
  DELETE /uploads/image     → {"url": ...}; URLs outside our bucket are ignored
"""
from fastapi import APIRouter, Depends, UploadFile, File, HTTPException, status
from starlette.concurrency import run_in_threadpool

from identity_api.core.dependencies import get_current_session
from identity_api.core.exceptions import NotFoundException, ValidationException
from identity_api.schemas.auth import SessionClaims
from identity_api.schemas.user import (
    ImageUploadResponse, ImageDeleteRequest, ImageDeleteResponse, DocumentUploadResponse,
)
from identity_api.services.storage_service import (
    ALLOWED_DOCUMENT_TYPES, ALLOWED_IMAGE_TYPES, MAX_DOCUMENT_SIZE_BYTES, MAX_FILE_SIZE_BYTES,
    S3BlobStore, get_blob_store,
)

router = APIRouter()


@router.post("/image", response_model=ImageUploadResponse)
async def upload_image(
    file: UploadFile = File(...),
    claims: SessionClaims = Depends(get_current_session),
    blob_store: S3BlobStore = Depends(get_blob_store),
):
    if file.content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationException("Invalid file type. Please upload an image.")

    contents = await file.read()
    if len(contents) > MAX_FILE_SIZE_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="File too large. Maximum size is 5MB.",
        )

    # boto3 is synchronous
    return await run_in_threadpool(blob_store.upload_image, contents, file.content_type)


@router.post("/document", response_model=DocumentUploadResponse)
async def upload_document(
    file: UploadFile = File(...),
    claims: SessionClaims = Depends(get_current_session),
    blob_store: S3BlobStore = Depends(get_blob_store),
):
    if file.content_type not in ALLOWED_DOCUMENT_TYPES:
        raise ValidationException("Invalid file type. Please upload a PDF.")

    contents = await file.read()
    if not contents:
        raise ValidationException("No file uploaded")
    if len(contents) > MAX_DOCUMENT_SIZE_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="File too large. Maximum size is 10MB.",
        )

    result = await run_in_threadpool(blob_store.upload_document, contents, file.content_type)
    return {**result, "file_name": file.filename}


@router.delete("/image", response_model=ImageDeleteResponse)
def delete_image(
    body: ImageDeleteRequest,
    claims: SessionClaims = Depends(get_current_session),
    blob_store: S3BlobStore = Depends(get_blob_store),
):
    result = blob_store.delete_image(body.url)
    if result == "not found":
        raise NotFoundException("Image")
    message = "Image deleted successfully" if result == "ok" else "Not one of our images; nothing deleted"
    return {"message": message, "result": result}
