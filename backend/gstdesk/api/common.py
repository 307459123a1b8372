"""
Shared router helpers: pagination parameters, list envelope and domain error mapping.
"""
import logging
import math
from typing import Any, Callable, List, Optional, Tuple

from fastapi import HTTPException, Query

from ..config import settings
from ..application.errors import GSTDeskError, NotFoundError, ConflictError

logger = logging.getLogger(__name__)


def page_params(
    page: int = Query(1, ge=1, description="1-based page number"),
    page_size: Optional[int] = Query(None, ge=1, description="Rows per page"),
) -> Tuple[int, int]:
    size = page_size or settings.default_page_size
    return page, min(size, settings.max_page_size)


def page_response(items: List[Any], page: int, page_size: int, total_count: int, **extra) -> dict:
    body = {
        "items": items,
        "page": page,
        "page_size": page_size,
        "total_count": total_count,
        "total_pages": math.ceil(total_count / page_size) if page_size else 0,
    }
    body.update(extra)
    return body


def http_error(e: GSTDeskError) -> HTTPException:
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, ConflictError):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


def run(action: str, fn: Callable[[], Any]) -> Any:
    """Runs a service call, mapping domain errors to 4xx and logging anything else as 500."""
    try:
        return fn()
    except GSTDeskError as e:
        raise http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error while {action}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Unexpected error: {str(e)}")
