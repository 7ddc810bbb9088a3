from contextlib import asynccontextmanager
from fastapi import FastAPI
from split_settlement.api.v1.routes.settlements import router as settlements_router
from split_settlement.core.config import settings
from split_settlement.core.logging import configure_logging
from split_settlement.rabbitmq.producer import close_rabbitmq_producer

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Producer is created lazily on first publish
    close_rabbitmq_producer()


app = FastAPI(
    title=settings.PROJECT_NAME,
    description=settings.DESCRIPTION,
    version=settings.PROJECT_VERSION,
    lifespan=lifespan
)

app.include_router(settlements_router)

@app.get("/")
def read_root():
    return {"message": settings.PROJECT_NAME, "version": settings.PROJECT_VERSION}

@app.get("/health")
def health_check():
    return {"status": "healthy"}
