"""
Marketplace API — Request dependencies

The session factory and the order workflow live on app.state; they are
built once in create_app() and handed to the routes from there.
"""
from typing import AsyncIterator

from fastapi import HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.core.access import Caller, Role
from marketplace.workflow.orders import OrderWorkflow


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    async with request.app.state.session_factory() as session:
        yield session


def get_workflow(request: Request) -> OrderWorkflow:
    return request.app.state.workflow


def get_caller(request: Request) -> Caller:
    claims = getattr(request.state, "user", None)
    if not claims:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return Caller(
            user_id=int(claims["sub"]),
            role=Role(claims["role"]),
            display_name=claims.get("name", ""),
        )
    except (KeyError, TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Malformed token claims.",
            headers={"WWW-Authenticate": "Bearer"},
        )
