from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from .db import Base, engine
from .logging_config import configure_logging
from .settings import settings
from .routers import health
from .routers import forms
from .routers import responses
from .routers import scoring
from .routers import analytics
from .routers import suggestions

app = FastAPI(title="Form Builder API", version=health.API_VERSION)
app.add_middleware(
	CORSMiddleware,
	allow_origins=settings.allowed_origins(),
	allow_origin_regex=r"https://.*\.onrender\.com",
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(responses.router)
app.include_router(suggestions.router)
app.include_router(forms.router)
app.include_router(scoring.router)
app.include_router(analytics.router)

# Uploaded images; the directory is created on startup
app.mount("/uploads", StaticFiles(directory=settings.uploads_dir, check_dir=False), name="uploads")


@app.on_event("startup")
async def startup_event():
	logger = configure_logging(settings.log_level)
	Base.metadata.create_all(bind=engine)
	Path(settings.uploads_dir).mkdir(parents=True, exist_ok=True)
	logger.info("Form builder API started (database: %s)", engine.url.render_as_string(hide_password=True))
