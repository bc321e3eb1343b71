import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import CORS_ORIGINS, LOG_LEVEL
from database import ensure_indexes, get_database
from errors import register_exception_handlers
from routes.admin_routes import router as admin_router
from routes.auth_routes import router as auth_router
from routes.withdrawal_routes import router as withdrawal_router

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_indexes(get_database())
    yield


app = FastAPI(title="Referral Store API", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)

app.include_router(auth_router, prefix="/api/v1/users", tags=["Users"])
app.include_router(withdrawal_router, prefix="/api/v1/users", tags=["Withdrawals"])
app.include_router(admin_router, prefix="/api/v1/admin", tags=["Admin"])
