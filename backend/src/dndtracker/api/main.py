from contextlib import asynccontextmanager
from fastapi import FastAPI

from dndtracker.config import get_settings
from dndtracker.db.init_db import init_db
from dndtracker.log import setup_logging
from dndtracker.api.routers.encounters import router as encounters_router
from dndtracker.api.routers.encounter_saves import router as encounter_saves_router
from dndtracker.api.routers.encounter_runtime import router as encounter_runtime_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(get_settings().log_level)
    init_db()
    yield


app = FastAPI(title="D&D Round Tracker", lifespan=lifespan)


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(encounters_router)
app.include_router(encounter_saves_router)
app.include_router(encounter_runtime_router)
