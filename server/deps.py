"""Shared helpers for the API routers."""

from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import HTTPException, Request

from rulegraph.errors import (
    LastProjectError,
    ProjectNotFoundError,
    ProjectValidationError,
    RuleGeneratorError,
    RuleGraphError,
)
from rulegraph.sdk.rule_generator import RuleGenerator
from rulegraph.session import EditorSession


@contextmanager
def locked_session(request: Request) -> Iterator[EditorSession]:
    """The app's editor session, held exclusively for one handler."""
    with request.app.state.lock:
        yield request.app.state.session


def get_generator(request: Request) -> RuleGenerator:
    return request.app.state.generator


def to_http_exception(error: RuleGraphError) -> HTTPException:
    """Map a rulegraph error onto an HTTP status."""
    if isinstance(error, ProjectNotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, LastProjectError):
        return HTTPException(status_code=409, detail=str(error))
    if isinstance(error, ProjectValidationError):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, RuleGeneratorError):
        return HTTPException(status_code=502, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))
