from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mermaid_check import __version__
from mermaid_check.api.routes import router
from mermaid_check.config import get_settings
from mermaid_check.utils.logger import setup_logger

settings = get_settings()
setup_logger("mermaid_check", settings.log_level)

app = FastAPI(
    title="Mermaid Check",
    version=__version__,
)

# Middleware FIRST
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes AFTER middleware
app.include_router(router)
