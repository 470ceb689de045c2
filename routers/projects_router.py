"""
Projects router: add-project upload form and project lookups
"""
import logging
from pathlib import Path
from typing import Optional

import aiofiles
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from crud.project import ProjectRepository
from utils.security_utils import validate_uploaded_file, generate_upload_filename
from utils.responses import message_response, error_response
from config.settings import settings, UPLOAD_DIR

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/projects", tags=["projects"])

MAX_NAME_ATTEMPTS = 5


def get_upload_dir() -> Path:
    """Dependency returning the directory uploaded images are written to."""
    UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
    return UPLOAD_DIR


async def save_upload(file: UploadFile, upload_dir: Path) -> str:
    """
    Validate an uploaded image and write it to upload_dir.

    Returns:
        The generated filename (not a path)
    """
    sanitized_filename, content = await validate_uploaded_file(file, settings.max_upload_size)
    filename = generate_upload_filename(sanitized_filename, upload_dir)

    # Exclusive create: a concurrent upload may have claimed the same name
    # between the check above and the open below
    for _ in range(MAX_NAME_ATTEMPTS):
        try:
            async with aiofiles.open(upload_dir / filename, "xb") as f:
                await f.write(content)
            break
        except FileExistsError:
            logger.info(f"Upload name {filename} already taken, retrying")
            filename = generate_upload_filename(sanitized_filename, upload_dir, force_segment=True)
    else:
        raise HTTPException(status_code=500, detail="Could not allocate a unique upload filename")

    logger.info(f"File uploaded successfully: {filename} (size: {len(content)} bytes)")
    return filename


@router.post("/add")
async def add_project(
    title: Optional[str] = Form(None),
    departments: Optional[str] = Form(None),
    type: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    partners: Optional[str] = Form(None),
    responsible: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    year: Optional[str] = Form(None),
    status: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db),
    upload_dir: Path = Depends(get_upload_dir),
):
    """
    Create a project from the multipart add-project form.

    The optional image is stored as <epoch-millis>-<original name> and only that
    generated filename is kept on the record.
    """
    filename = None
    if image is not None and image.filename:
        try:
            filename = await save_upload(image, upload_dir)
        except HTTPException as e:
            logger.info(f"Rejected upload {image.filename!r}: {e.detail}")
            return error_response(e.detail, status=e.status_code)

    repo = ProjectRepository(db)
    try:
        project = await repo.create_project({
            "title": title,
            "departments": departments,
            "type": type,
            "description": description,
            "partners": partners,
            "responsible_person": responsible,
            "responsible_email": email,
            "year": year,
            "status": status,
            "location": location,
            "image": filename,
        })
    except Exception as e:
        await db.rollback()
        logger.error(f"Project creation failed: {e}")
        if filename:
            (upload_dir / filename).unlink(missing_ok=True)
        return error_response("Failed to create project", status=500)

    logger.info(f"Project created: {project.id} ({project.title})")
    return message_response("Project created successfully!", status=201)


@router.get("")
async def list_projects(db: AsyncSession = Depends(get_db)):
    """List projects, newest first."""
    try:
        projects = await ProjectRepository(db).list_projects()
    except Exception as e:
        logger.error(f"Project fetch failed: {e}")
        return error_response("Failed to fetch projects", status=500)
    return [project.to_dict() for project in projects]


@router.get("/{project_id}")
async def get_project(project_id: int, db: AsyncSession = Depends(get_db)):
    project = await ProjectRepository(db).get_project_by_id(project_id)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    return project.to_dict()
