"""Service information and diagnostic endpoints."""
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from response_helpers import create_error_response, create_success_response, current_timestamp

router = APIRouter()


@router.get("/")
def root(request: Request):
    """Service information."""
    return create_success_response({
        "service": request.app.title,
        "version": request.app.version,
        "docs": request.app.docs_url,
    })


@router.get("/api/test")
def get_test_data(request: Request):
    """Confirm the API is running."""
    return create_success_response({
        "message": "FastAPI server is running",
        "status": "active",
        "version": request.app.version,
        "timestamp": current_timestamp(),
    })


@router.get("/api/test/error")
def get_test_error():
    """Exercise the unexpected-error path."""
    raise RuntimeError("This is a test error")


@router.get("/api/test/hello/{name}")
def get_hello(name: str):
    if not name.strip():
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=create_error_response("Name parameter is required", status.HTTP_400_BAD_REQUEST),
        )
    return create_success_response({"message": f"Hello, {name}!", "timestamp": current_timestamp()})
