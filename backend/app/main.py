import logging

from fastapi import FastAPI

from .db import Base, engine, ensure_schema
from .history_cache import HistoryCache
from .settings import settings
from .routers import health
from .routers import auth
from .routers import assignments

logging.basicConfig(
	level=getattr(logging, settings.log_level.upper(), logging.INFO),
	format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Assignment Time Planner API")
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(assignments.router)


@app.get("/info")
def root():
	return {"status": "ok", "gemini_configured": bool(settings.gemini_api_key)}


@app.on_event("startup")
async def startup_event():
	# Initialize DB schema
	Base.metadata.create_all(bind=engine)
	# Apply lightweight dev migrations
	try:
		ensure_schema()
	except Exception:
		logger.exception("Schema migration skipped")
	app.state.history_cache = HistoryCache(assignments.load_history)
	if not settings.gemini_api_key:
		logger.warning("GEMINI_API_KEY is not set; estimate requests will fail")
