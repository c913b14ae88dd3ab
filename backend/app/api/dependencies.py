from fastapi import HTTPException, Request

from backend.app.services.progress.models import ErrorKind, OperationResult
from backend.app.services.progress.tracker import LifecycleEngine
from backend.app.services.view.projection import ViewProjection

# OperationResult error -> HTTP status
ERROR_STATUS_CODES = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INVALID_TRANSITION: 409,
    ErrorKind.RECORD_BUSY: 409,
}


def get_engine(request: Request) -> LifecycleEngine:
    """Lifecycle engine created by the app lifespan."""
    return request.app.state.engine


def get_view(request: Request) -> ViewProjection:
    return request.app.state.view


def raise_for_result(result: OperationResult):
    if not result.success:
        raise HTTPException(
            status_code=ERROR_STATUS_CODES[result.error],
            detail={"error": result.error.value, "message": result.message}
        )
