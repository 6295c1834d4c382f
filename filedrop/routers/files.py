# filedrop/routers/files.py
import logging

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel
from sqlalchemy.orm import Session as DBSession

from filedrop.auth.session import Session, require_session
from filedrop.core.exceptions import NotFoundError
from filedrop.models.database import get_db
from filedrop.models.file import File

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["file"])


class FileIdInput(BaseModel):
    id: str


class FileKeyInput(BaseModel):
    key: str


# --- list the caller's files ---
@router.get("/file.fetchAll")
def fetch_all(session: Session = Depends(require_session), db: DBSession = Depends(get_db)):
    files = (
        db.query(File)
        .filter(File.user_id == session.user.id)
        .order_by(File.created_at.desc())
        .all()
    )
    return [f.to_dict() for f in files]


# --- fetch one file by id ---
@router.get("/file.fetchFile")
def fetch_file(
    id: str = Query(...),
    session: Session = Depends(require_session),
    db: DBSession = Depends(get_db),
):
    # Not filtered by owner: any signed-in user can read any file by id.
    # Kept as-is pending a product decision on who may view shared files.
    file = db.query(File).filter(File.id == id).first()
    if not file:
        raise NotFoundError("File", id=id)
    return file.to_dict()


# --- delete a file ---
@router.post("/file.deleteFile")
def delete_file(
    payload: FileIdInput,
    request: Request,
    session: Session = Depends(require_session),
    db: DBSession = Depends(get_db),
):
    file = (
        db.query(File)
        .filter(File.id == payload.id, File.user_id == session.user.id)
        .first()
    )
    if not file:
        raise NotFoundError("File", id=payload.id)

    deleted = file.to_dict()

    storage = request.app.state.storage
    if storage is not None and not storage.delete(file.key):
        # the row goes anyway; the orphaned object is only logged
        logger.warning("File %s deleted with its object still in storage", file.id)

    db.delete(file)
    db.commit()
    return deleted


# --- look up a file by its storage key ---
@router.post("/file.getFile")
def get_file(
    payload: FileKeyInput,
    session: Session = Depends(require_session),
    db: DBSession = Depends(get_db),
):
    file = (
        db.query(File)
        .filter(File.key == payload.key, File.user_id == session.user.id)
        .first()
    )
    if not file:
        raise NotFoundError("File", key=payload.key)
    return file.to_dict()
