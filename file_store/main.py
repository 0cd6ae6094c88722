from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

import config
from app.models import ErrorOut, UploadOut
from app.services.errors import IOFailure, StoreError
from app.services.storage_manager import StorageManager
from logger_config import setup_logger

# Logger setup
logger = setup_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create and initialize storage manager
    app.state.storage_manager = StorageManager(
        Path(config.DATA_DIR), Path(config.TEMP_DIR), base_url=config.BASE_URL
    )
    await app.state.storage_manager.initialize()
    yield


# Create FastAPI app with lifespan
app = FastAPI(title="File Store Server", lifespan=lifespan)

ERROR_RESPONSES = {400: {"model": ErrorOut}}


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every request and keep unexpected errors from escaping as 500s."""
    client = request.client.host if request.client else "-"
    logger.info(f"{client} {request.method} {request.url.path}")
    try:
        return await call_next(request)
    except Exception as e:
        logger.error(f"Unhandled error for {request.method} {request.url.path}: {e}", exc_info=True)
        return JSONResponse(status_code=400, content={"error": f"Internal error: {e}"})


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error(f"{request.method} {request.url.path} failed ({exc.kind}): {exc.message}")
    return JSONResponse(status_code=400, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Render framework errors (bad multipart bodies, unknown routes) in the same shape."""
    logger.error(f"{request.method} {request.url.path} failed ({exc.status_code}): {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


@app.api_route(
    "/files/{key:path}",
    methods=["POST", "PUT"],
    status_code=201,
    response_model=UploadOut,
    responses=ERROR_RESPONSES,
)
async def upload_file(key: str, request: Request):
    """Store the request body under ``key``.

    A ``multipart/form-data`` body is read from its ``file`` field in full
    before it is written; any other body is streamed straight to disk.
    """
    storage_manager = request.app.state.storage_manager

    # Reject bad keys before touching the body
    target = storage_manager.resolve(key)
    logger.info(
        f"Upload attempt for {key} -> {target} "
        f"(content-length: {request.headers.get('content-length')})"
    )

    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        try:
            upload = form.get("file")
            if upload is None or isinstance(upload, str):
                raise IOFailure("Multipart upload has no 'file' field")
            data = await upload.read()
        finally:
            await form.close()
        result = await storage_manager.write_bytes(key, data)
    else:
        result = await storage_manager.write_stream(key, request.stream())

    return UploadOut(url=result.url, path=result.key)


@app.get("/files/{key:path}", responses=ERROR_RESPONSES)
async def get_file(key: str, request: Request):
    """Stream back the blob stored under ``key``."""
    storage_manager = request.app.state.storage_manager

    blob = await storage_manager.open_blob(key)
    logger.info(f"Serving file {blob.path} ({blob.size} bytes)")

    return StreamingResponse(
        blob.chunks(),
        media_type="application/octet-stream",
        headers={"content-length": str(blob.size)},
    )


@app.delete("/files/{key:path}", status_code=204, responses=ERROR_RESPONSES)
async def delete_file(key: str, request: Request):
    """Delete the blob stored under ``key``; a missing blob is an error."""
    storage_manager = request.app.state.storage_manager
    logger.info(f"Delete attempt for {key}")

    await storage_manager.delete_blob(key)
    return Response(status_code=204)


def run():
    logger.info("Starting file store server...")
    logger.info(f"Data directory: {Path(config.DATA_DIR).absolute()}")
    logger.info(f"Temporary directory: {Path(config.TEMP_DIR).absolute()}")
    logger.info(f"Listening on {config.HOST}:{config.PORT}")
    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    run()
