from fastapi.responses import JSONResponse
from schemas.base import SErrorResponse
from utils.errors import ServiceError




def error_response(error: ServiceError) -> JSONResponse:
    """Resposta {success: false, error, code} com o código HTTP do erro"""
    body = SErrorResponse(
        error=error.message,
        code=error.code,
        current_status=getattr(error, "current_status", None)
    )
    return JSONResponse(status_code=error.status_code, content=body.model_dump(by_alias=True, exclude_none=True))
