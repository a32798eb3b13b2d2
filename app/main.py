import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from app.config import LOG_LEVEL
from app.routers import auth, bookings, conversations, equipment, favorites, users
from app.db import init_database

logging.basicConfig(level=getattr(logging, LOG_LEVEL.upper(), logging.INFO))


@asynccontextmanager
async def lifespan(_: FastAPI):
    "lifespan for initing database"
    init_database()
    yield


app = FastAPI(
    lifespan=lifespan,
    title="Film gear rental",
    description="Peer-to-peer film equipment rental backend based on FastAPI.",
    version="0.1.0",
    license_info={
        "name": "MIT",
        "url": "https://opensource.org/licenses/MIT",
    },
)


app.include_router(auth.router)
app.include_router(users.router)
app.include_router(equipment.router)
app.include_router(bookings.router)
app.include_router(conversations.router)
app.include_router(favorites.router)


@app.get("/health")
def health():
    return {"status": "ok"}
