"""
Document uploads attached to an application. The blob is written before its row, and a
failed row insert removes the blob again, so a row never points at a missing file.
"""
from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from models import Document
from models.enums import DocumentCategory
from services.applications import load_for_viewer
from services.auth import AuthContext
from services.errors import NotFoundError, PersistenceError, ValidationError
from services.storage import BlobStore, BlobStoreError, build_storage_path
from utils.ids import new_id

logger = logging.getLogger(__name__)

ACCEPTED_EXTENSIONS = (".pdf", ".png", ".jpg", ".jpeg", ".doc", ".docx", ".xls", ".xlsx")


def document_to_dict(doc: Document, blob_store: Optional[BlobStore] = None) -> dict[str, Any]:
    return {
        "id": doc.id,
        "application_id": doc.application_id,
        "category": doc.category,
        "original_filename": doc.original_filename,
        "storage_path": doc.storage_path,
        "mime_type": doc.mime_type,
        "size_bytes": doc.size_bytes,
        "url": blob_store.public_url(doc.storage_path) if blob_store else None,
        "created_at": doc.created_at.isoformat() if doc.created_at else None,
    }


def validate_upload(filename: str, size: int) -> None:
    ext = PurePosixPath(filename or "").suffix.lower()
    if ext not in ACCEPTED_EXTENSIONS:
        raise ValidationError(
            f"File {filename} is not a supported format. Accepted: PDF, PNG, JPG, JPEG, DOC, DOCX, XLS, XLSX"
        )
    if size <= 0:
        raise ValidationError(f"File {filename} is empty")
    if size > settings.max_upload_bytes:
        raise ValidationError(f"File {filename} is too large. Maximum size is {settings.max_upload_bytes // (1024 * 1024)}MB")


async def upload_document(
    session: AsyncSession,
    ctx: AuthContext,
    blob_store: BlobStore,
    application_id: str,
    category: DocumentCategory | str,
    filename: str,
    data: bytes,
    mime_type: Optional[str] = None,
) -> Document:
    try:
        category = DocumentCategory(category)
    except ValueError:
        raise ValidationError(f"Unknown document category '{category}'") from None
    app = await load_for_viewer(session, ctx, application_id)
    validate_upload(filename, len(data))

    path = build_storage_path(ctx.user_id, app.id, category.value, filename)
    try:
        await blob_store.upload(path, data)
    except BlobStoreError as e:
        logger.error("Upload of %s for application %s failed: %s", filename, app.id, e)
        raise PersistenceError(f"Error uploading {filename}") from e

    doc = Document(
        id=new_id("doc"),
        application_id=app.id,
        category=category.value,
        original_filename=filename,
        storage_path=path,
        mime_type=mime_type,
        size_bytes=len(data),
        uploaded_by=ctx.user_id,
    )
    session.add(doc)
    try:
        await session.flush()
    except Exception as e:
        logger.error("Document row insert failed for %s; removing blob %s", filename, path)
        try:
            await blob_store.remove([path])
        except BlobStoreError:
            logger.exception("Orphaned blob left at %s", path)
        raise PersistenceError(f"Error saving document record for {filename}") from e
    return doc


async def list_documents(
    session: AsyncSession, ctx: AuthContext, application_id: str, category: Optional[str] = None
) -> list[Document]:
    app = await load_for_viewer(session, ctx, application_id)
    stmt = select(Document).where(Document.application_id == app.id).order_by(Document.created_at.desc())
    if category:
        stmt = stmt.where(Document.category == category)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def has_document(session: AsyncSession, application_id: str, category: DocumentCategory) -> bool:
    result = await session.execute(
        select(Document.id)
        .where(Document.application_id == application_id, Document.category == category.value)
        .limit(1)
    )
    return result.first() is not None


async def delete_document(
    session: AsyncSession, ctx: AuthContext, blob_store: BlobStore, application_id: str, document_id: str
) -> None:
    app = await load_for_viewer(session, ctx, application_id)
    result = await session.execute(
        select(Document).where(Document.id == document_id, Document.application_id == app.id)
    )
    doc = result.scalar_one_or_none()
    if not doc:
        raise NotFoundError("Document not found")
    try:
        await blob_store.remove([doc.storage_path])
    except BlobStoreError as e:
        raise PersistenceError(f"Could not remove {doc.original_filename}; the document was kept") from e
    await session.delete(doc)
    await session.flush()
