import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from formapi.config import config
from formapi.database import database
from formapi.logging_conf import configure_logging
from formapi.routers.form import router as form_router
from formapi.routers.session import router as session_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    # connect database
    await database.connect()
    logger.info("Database connected")
    yield
    # disconnect database
    await database.disconnect()


app = FastAPI(
    title="Form API",
    description="Build forms and quizzes, collect responses and view analytics",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(form_router, prefix="/api/forms", tags=["Form"])
app.include_router(session_router, prefix="/api", tags=["Session"])
