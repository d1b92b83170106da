"""ASGI entrypoint: ``uvicorn persistent_drawings.api.asgi:app``."""

from persistent_drawings.api.app import create_app
from persistent_drawings.config import Settings
from persistent_drawings.containers import build_container

settings = Settings()
app = create_app(build_container(settings))
