from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from canvaslib.config import settings
from canvaslib.logging import logger
import time

# Import containers to register providers
from apps.builder import container as _builder_container  # noqa: F401

# Routers
from apps.builder.routes import router as builder_router

app = FastAPI(title=f"{settings.app_name} (Gateway)")

# CORS middleware - the canvas front end is served from another origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.middleware("http")
async def log_builder_operations(request: Request, call_next):
    """
    Log builder session operations (save and run hit the engine) with timing.
    """
    start_time = time.time()
    path = request.url.path
    method = request.method
    is_builder_request = path.startswith("/builder/sessions")

    try:
        response = await call_next(request)
    except Exception as e:
        duration = (time.time() - start_time) * 1000
        logger.error(f"Builder request exception: {method} {path} - Error: {str(e)} - Duration: {duration:.2f}ms")
        raise

    if is_builder_request:
        duration = (time.time() - start_time) * 1000
        status = response.status_code
        if status >= 500:
            logger.error(f"Builder request failed: {method} {path} - Status: {status} - Duration: {duration:.2f}ms")
        elif status >= 400:
            logger.warning(f"Builder request rejected: {method} {path} - Status: {status} - Duration: {duration:.2f}ms")
        else:
            logger.info(f"Builder request: {method} {path} - Status: {status} - Duration: {duration:.2f}ms")

    return response

@app.get('/healthz')
async def healthz():
    return {'status': 'ok', 'mode': settings.service_mode}

app.include_router(builder_router)
