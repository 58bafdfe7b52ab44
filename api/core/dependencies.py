"""
FastAPI dependencies shared by feature routers.
"""

from __future__ import annotations

import asyncpg
from fastapi import Request

from . import errors


def get_pool(request: Request) -> asyncpg.Pool:
    """
    The pool owned by the application lifespan.

    Requests are refused until the pool exists and schema bootstrap succeeded.
    """
    state = request.app.state
    pool = getattr(state, "pool", None)
    if pool is None or not getattr(state, "ready", False):
        raise errors.DatabaseError(errors.ErrorKind.CONNECTIVITY, "Database is not ready.")
    return pool
