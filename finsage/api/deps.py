# =============================================================================
# API Dependencies — Session, Resolver and Pipeline Injection
# =============================================================================
#
# DESIGN DECISION: FastAPI dependencies (not module globals) hand the
# session context and services to route handlers. The shared objects live
# on `app.state` (built in create_app()), and tests swap them through
# `app.dependency_overrides`.
#
# Sessions are identified by a cookie, the server-side analogue of the
# browser's sessionStorage. A client without the cookie gets a fresh
# session and the cookie is set on the response. The cookie name comes
# from the config passed to create_app().
# =============================================================================

from __future__ import annotations

import logging

from fastapi import Depends, Request, Response

from finsage.config import Settings
from finsage.services.ingestion import IngestionPipeline
from finsage.services.resolver import QueryResolver
from finsage.services.session import SessionContext, SessionRegistry

logger = logging.getLogger(__name__)


def get_config(request: Request) -> Settings:
    return request.app.state.config


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


def get_resolver(request: Request) -> QueryResolver:
    return request.app.state.resolver


def get_pipeline(request: Request) -> IngestionPipeline:
    return request.app.state.pipeline


async def get_session(
    request: Request,
    response: Response,
    registry: SessionRegistry = Depends(get_registry),
    config: Settings = Depends(get_config),
) -> SessionContext:
    """
    Resolve the caller's SessionContext from the session cookie.

    Unknown or missing cookies start a new session with a server-generated
    id, written back as an httponly cookie.
    """
    cookie_name = config.session_cookie_name
    session_id = request.cookies.get(cookie_name)
    session = await registry.get_or_create(session_id)
    if session.session_id != session_id:
        response.set_cookie(
            cookie_name,
            session.session_id,
            httponly=True,
            samesite="lax",
        )
    return session
