"""FastAPI application setup for Crypto Explorer."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api import router as api_router

app = FastAPI(title="Crypto Explorer")


@app.exception_handler(StarletteHTTPException)
async def error_body(_request: Request, exc: StarletteHTTPException):
    """Render every HTTP error as {"error": "..."}."""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


# API routes
app.include_router(api_router, prefix="/api")
