"""URL shortener service: FastAPI app, storage strategies and CLI (python -m shortener)."""

__version__ = "1.0.0"
