from fastapi import FastAPI

from .db import Base, engine
from .cleanup import abandon_stale_conversations
from .errors import install_error_handlers
from .settings import settings
from .store import get_store
from .routers import health, recommendations
from .routers import conversation
from .routers import analysis
from .routers import materials
from .routers import speech
import asyncio
import logging

logging.basicConfig(
	level=settings.log_level.upper(),
	format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

app = FastAPI(title="Kaiwa Practice API")
install_error_handlers(app)
app.include_router(health.router)
app.include_router(recommendations.router)
app.include_router(conversation.router)
app.include_router(analysis.router)
app.include_router(materials.router)
app.include_router(speech.router)

@app.get("/info")
def root():
	return {"status": "ok", "gemini_configured": bool(settings.gemini_api_key)}

_cleanup_task: asyncio.Task | None = None

async def _cleanup_watcher():
	# Startup already ran one pass; repeat hourly
	while True:
		await asyncio.sleep(60 * 60)
		try:
			await asyncio.to_thread(abandon_stale_conversations, get_store(), settings.stale_conversation_hours)
		except Exception:
			logger.exception("Stale conversation cleanup failed")

@app.on_event("startup")
async def startup_event():
	# Initialize DB schema
	Base.metadata.create_all(bind=engine)
	try:
		abandon_stale_conversations(get_store(), settings.stale_conversation_hours)
	except Exception:
		logger.exception("Stale conversation cleanup failed")
	global _cleanup_task
	_cleanup_task = asyncio.create_task(_cleanup_watcher())
