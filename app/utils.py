from fastapi.responses import JSONResponse


def error_response(status_code: int, message: str) -> JSONResponse:
    """Error body shared by all endpoints: {"error": message}."""
    return JSONResponse(status_code=status_code, content={"error": message})
