from fastapi import FastAPI
from canvaslib.di import container
from canvaslib.logging import logger
from . import container as _providers  # noqa: F401
from .routes import router

app = FastAPI(title='Builder Service')
app.include_router(router)

logger.info(f"Builder service ready: {', '.join(container.registered())}")
