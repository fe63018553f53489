"""API routes for rule project management."""

from fastapi import APIRouter, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from rulegraph.errors import RuleGraphError
from rulegraph.models.project import RuleProject
from rulegraph.utils.identifiers import project_export_filename
from server.deps import get_generator, locked_session, to_http_exception

router = APIRouter()


# --- Request Models ---


class CreateProjectRequest(BaseModel):
    """Request body for creating a new project."""

    name: str
    description: str = ""


class ImportTextRequest(BaseModel):
    """Request body for generating a project from free text."""

    text: str
    name: str
    description: str = ""


def _import_locked(request: Request, project: RuleProject) -> RuleProject:
    with locked_session(request) as session:
        return session.import_project(project)


# --- Routes ---


@router.get("/projects")
def list_projects(request: Request) -> list[RuleProject]:
    """list all projects."""
    with locked_session(request) as session:
        return session.projects.list_projects()


@router.post("/projects", status_code=201)
def create_project(request: Request, body: CreateProjectRequest) -> RuleProject:
    """create a project and open it in the editor."""
    with locked_session(request) as session:
        try:
            return session.create_project(body.name, body.description)
        except RuleGraphError as e:
            raise to_http_exception(e) from e


@router.get("/projects/active")
def get_active_project(request: Request) -> RuleProject:
    """the open project, with the live graph synced into it."""
    with locked_session(request) as session:
        project = session.sync_active_project()
    if project is None:
        raise HTTPException(status_code=404, detail="No active project")
    return project


@router.put("/projects/{project_id}/activate")
def activate_project(request: Request, project_id: str) -> RuleProject:
    """save the current graph and switch to another project."""
    with locked_session(request) as session:
        try:
            return session.switch_project(project_id)
        except RuleGraphError as e:
            raise to_http_exception(e) from e


@router.delete("/projects/{project_id}")
def delete_project(request: Request, project_id: str) -> dict:
    """delete a project. The last project cannot be deleted."""
    with locked_session(request) as session:
        try:
            session.delete_project(project_id)
        except RuleGraphError as e:
            raise to_http_exception(e) from e
        return {"deleted": project_id, "active_project_id": session.active_project_id}


@router.get("/projects/{project_id}/export")
def export_project(request: Request, project_id: str) -> JSONResponse:
    """download a project as JSON."""
    with locked_session(request) as session:
        try:
            project = session.export_project(project_id)
        except RuleGraphError as e:
            raise to_http_exception(e) from e
    filename = project_export_filename(project.name)
    return JSONResponse(
        content=project.model_dump(mode="json", by_alias=True),
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/projects/import")
def import_project(request: Request, body: dict) -> RuleProject:
    """import (or overwrite) a project from its exported JSON."""
    with locked_session(request) as session:
        try:
            return session.import_project(body)
        except RuleGraphError as e:
            raise to_http_exception(e) from e


@router.post("/projects/import-text")
async def import_project_from_text(request: Request, body: ImportTextRequest) -> RuleProject:
    """generate a project from a free-text rule description.

    The model call runs without holding the session; the import runs in the
    threadpool under the session lock.
    """
    generator = get_generator(request)
    session = request.app.state.session
    try:
        project = await session.build_project_from_text(
            body.text, body.name, body.description, generator
        )
    except RuleGraphError as e:
        raise to_http_exception(e) from e
    return await run_in_threadpool(_import_locked, request, project)
