from __future__ import annotations

from fastapi.responses import JSONResponse

from backend.app.schemas.result import OperationResult
from backend.services.errors import NOT_FOUND, PRECONDITION_FAILED, STORAGE_FAILURE

ERROR_STATUS = {
    NOT_FOUND: 404,
    PRECONDITION_FAILED: 409,
    STORAGE_FAILURE: 500,
}


def result_response(result: OperationResult, success_status: int = 200) -> JSONResponse:
    if result.success:
        status_code = success_status
    else:
        status_code = ERROR_STATUS.get(result.code or "", 400)
    return JSONResponse(
        content=result.model_dump(mode="json", exclude_none=True),
        status_code=status_code,
    )
