"""
Integration tests for the add-project upload form and project lookups

Tests cover:
- Project creation without an image
- Image upload with timestamp-prefixed stored name
- Field mapping (responsible/email)
- Store-enforced required title
- Rejected uploads (extension, content, size)
- Unique stored names under concurrent uploads
"""
import asyncio
import io
import re
from types import SimpleNamespace

import pytest
from fastapi import UploadFile
from sqlalchemy import select, func

from database_models import Project
from routers import projects_router
from routers.projects_router import save_upload
from utils import security_utils
from utils.security_utils import MAX_FILE_SIZE


PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def project_count(db_session):
    return db_session.execute(select(func.count()).select_from(Project)).scalar_one()


def test_add_project_title_only(client, db_session):
    response = client.post("/api/projects/add", data={"title": "Campus Garden"})

    assert response.status_code == 201
    assert response.json() == {"message": "Project created successfully!"}

    project = db_session.execute(select(Project)).scalar_one()
    assert project.title == "Campus Garden"
    assert project.image is None


def test_add_project_maps_form_fields(client, db_session):
    form = {
        "title": "River Survey",
        "departments": "Biology",
        "type": "Research",
        "description": "Water quality sampling",
        "partners": "City Council",
        "responsible": "Dr. Grace Hopper",
        "email": "grace@example.edu",
        "year": "2024",
        "status": "ongoing",
        "location": "Thessaloniki",
    }

    response = client.post("/api/projects/add", data=form)
    assert response.status_code == 201

    project = db_session.execute(select(Project)).scalar_one()
    assert project.responsible_person == "Dr. Grace Hopper"
    assert project.responsible_email == "grace@example.edu"
    assert project.departments == "Biology"
    assert project.location == "Thessaloniki"


def test_add_project_with_image(client, db_session, upload_dir):
    files = {"image": ("poster.png", io.BytesIO(PNG_BYTES), "image/png")}

    response = client.post("/api/projects/add", data={"title": "Poster Day"}, files=files)

    assert response.status_code == 201
    project = db_session.execute(select(Project)).scalar_one()
    assert project.image
    assert project.image != "poster.png"
    assert re.fullmatch(r"\d{13}-poster\.png", project.image)
    # Only the filename is stored, and the file exists in the upload directory
    assert "/" not in project.image
    assert (upload_dir / project.image).read_bytes() == PNG_BYTES


def test_add_project_sanitizes_upload_name(client, db_session, upload_dir):
    files = {"image": ("../../etc/my poster.png", io.BytesIO(PNG_BYTES), "image/png")}

    response = client.post("/api/projects/add", data={"title": "Traversal"}, files=files)

    assert response.status_code == 201
    project = db_session.execute(select(Project)).scalar_one()
    assert project.image.endswith("_poster.png")
    assert "/" not in project.image and ".." not in project.image
    assert (upload_dir / project.image).exists()


def test_add_project_missing_title_fails(client, db_session, upload_dir):
    files = {"image": ("poster.png", io.BytesIO(PNG_BYTES), "image/png")}

    response = client.post("/api/projects/add", data={"description": "No title"}, files=files)

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to create project"}
    assert project_count(db_session) == 0
    # The image written for the failed request is removed
    assert list(upload_dir.iterdir()) == []


def test_add_project_rejects_forbidden_extension(client, db_session, upload_dir):
    files = {"image": ("payload.exe", io.BytesIO(b"MZ\x90\x00"), "application/octet-stream")}

    response = client.post("/api/projects/add", data={"title": "Bad"}, files=files)

    assert response.status_code == 400
    assert "not allowed" in response.json()["error"]
    assert project_count(db_session) == 0
    assert list(upload_dir.iterdir()) == []


def test_add_project_rejects_non_image_content(client, db_session):
    files = {"image": ("fake.png", io.BytesIO(b"just some text"), "image/png")}

    response = client.post("/api/projects/add", data={"title": "Fake"}, files=files)

    assert response.status_code == 400
    assert project_count(db_session) == 0


def test_add_project_rejects_oversized_image(client, db_session):
    content = PNG_BYTES + b"\x00" * MAX_FILE_SIZE
    files = {"image": ("huge.png", io.BytesIO(content), "image/png")}

    response = client.post("/api/projects/add", data={"title": "Huge"}, files=files)

    assert response.status_code == 400
    assert "exceeds" in response.json()["error"]
    assert project_count(db_session) == 0


def test_list_and_get_projects(client):
    client.post("/api/projects/add", data={"title": "First"})
    client.post("/api/projects/add", data={"title": "Second"})

    response = client.get("/api/projects")
    assert response.status_code == 200
    projects = response.json()
    assert [p["title"] for p in projects] == ["Second", "First"]
    assert projects[0]["image"] is None
    assert "responsiblePerson" in projects[0]

    project_id = projects[1]["id"]
    response = client.get(f"/api/projects/{project_id}")
    assert response.status_code == 200
    assert response.json()["title"] == "First"


def test_get_missing_project(client):
    response = client.get("/api/projects/9999")

    assert response.status_code == 404
    assert response.json() == {"message": "Project not found"}


def test_project_creation_needs_no_session(client):
    # Creation routes are open; no cookie is sent here
    assert client.post("/api/projects/add", data={"title": "Open"}).status_code == 201


def make_upload(content, filename="poster.png"):
    return UploadFile(file=io.BytesIO(content), filename=filename)


@pytest.mark.asyncio
async def test_save_upload_never_overwrites_claimed_name(tmp_path, monkeypatch):
    real_generate = projects_router.generate_upload_filename

    def stale_check(name, upload_dir, force_segment=False):
        # Simulates another upload claiming the name after the existence check
        if force_segment:
            return real_generate(name, upload_dir, force_segment=True)
        return f"1700000000500-{name}"

    monkeypatch.setattr(projects_router, "generate_upload_filename", stale_check)
    (tmp_path / "1700000000500-poster.png").write_bytes(b"already here")

    filename = await save_upload(make_upload(PNG_BYTES), tmp_path)

    assert filename != "1700000000500-poster.png"
    assert re.fullmatch(r"1700000000500-[0-9a-f]{8}-poster\.png", filename)
    assert (tmp_path / filename).read_bytes() == PNG_BYTES
    assert (tmp_path / "1700000000500-poster.png").read_bytes() == b"already here"


@pytest.mark.asyncio
async def test_concurrent_uploads_with_same_name_keep_both_files(tmp_path, monkeypatch):
    monkeypatch.setattr(security_utils, "time", SimpleNamespace(time=lambda: 1700000000.5))
    first = PNG_BYTES + b"first"
    second = PNG_BYTES + b"second"

    names = await asyncio.gather(
        save_upload(make_upload(first), tmp_path),
        save_upload(make_upload(second), tmp_path),
    )

    assert names[0] != names[1]
    assert sorted(p.name for p in tmp_path.iterdir()) == sorted(names)
    assert {(tmp_path / name).read_bytes() for name in names} == {first, second}
