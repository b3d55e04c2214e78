"""Entry point for the Hugging Face Space deployment.

Re-exports the omicsnet FastAPI application so the Space runtime can
discover and serve it.
"""

from omicsnet.main import app

__all__ = ["app"]
