"""Common FastAPI dependencies reused across controllers."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from httplog.application.interfaces import LogStoreInterface


def get_log_store(request: Request) -> LogStoreInterface:
    """Return the log store attached to the running application."""

    store = getattr(request.app.state, "log_store", None)
    if store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="log store is not available",
        )
    return store


LogStoreDep = Annotated[LogStoreInterface, Depends(get_log_store)]


__all__ = ["get_log_store", "LogStoreDep"]
