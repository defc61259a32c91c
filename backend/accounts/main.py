from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from accounts.routes import crm, face, login, persons, rfid
from accounts.services.identity_store import IdentityStore
from accounts.websocket.manager import ConnectionManager
from accounts.utils.config import settings
from accounts.utils.logger import setup_logging

setup_logging(level=logging.DEBUG if settings.DEBUG else logging.INFO, log_dir=settings.LOG_DIR)
logger = logging.getLogger(__name__)

ws_manager = ConnectionManager()


@asynccontextmanager
async def lifespan(app: FastAPI):

    logger.info("Starting accounts identity service...")

    logger.info(f"Opening identity store at {settings.IDENTITY_STORE_PATH}...")
    app.state.identity_store = IdentityStore(
        settings.IDENTITY_STORE_PATH,
        max_activity_events=settings.ACTIVITY_LOG_LIMIT
    )
    app.state.ws_manager = ws_manager

    if not settings.CRM_API_TOKEN:
        logger.warning("CRM_API_TOKEN not set, CRM endpoints will reject every request")
    if not settings.ADMIN_API_TOKEN:
        logger.warning("ADMIN_API_TOKEN not set, admin endpoints will reject every request")

    logger.info(f"Face match threshold: {settings.FACE_MATCH_THRESHOLD}")

    yield

    logger.info("Shutting down accounts identity service...")


app = FastAPI(
    title="Accounts Identity API",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(persons.router, prefix="/api", tags=["Persons"])
app.include_router(face.router, prefix="/api", tags=["Face"])
app.include_router(login.router, prefix="/api", tags=["Login"])
app.include_router(crm.router, prefix="/api", tags=["CRM"])
app.include_router(rfid.router, prefix="/api", tags=["RFID"])


@app.get("/")
async def root():
    store = getattr(app.state, "identity_store", None)
    return {
        "status": "online",
        "service": "Accounts Identity Service",
        "version": "1.0.0",
        "store": store is not None,
        "face_match_threshold": settings.FACE_MATCH_THRESHOLD
    }


@app.websocket("/ws/rfid")
async def rfid_websocket(websocket: WebSocket):
    """Streams RFID card reads to dashboards"""
    await app.state.ws_manager.connect(websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        app.state.ws_manager.disconnect(websocket)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "accounts.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
