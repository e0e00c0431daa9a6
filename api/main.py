import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from beans import bootstrap, schemas, service
from beans import router as beans_router
from core import errors, settings
from core.db import Database, get_database
from core.logging import configure_logging

load_dotenv()
configure_logging(settings.log_level())

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    database: Database = app.state.db
    await database.connect()
    try:
        await bootstrap.run_sql_file(database, settings.bootstrap_sql_path())

        dataset = settings.dataset_csv_path()
        if dataset is not None:
            await bootstrap.load_dataset(database, dataset)

        try:
            await bootstrap.log_stats(database)
        except Exception:
            logger.exception("bean_stats_failed")

        logger.info("api_docs path=/api-docs")
        yield
    finally:
        await database.close()


def create_app(database: Database | None = None) -> FastAPI:
    app = FastAPI(
        title="Dry Beans API",
        version="1.0.0",
        description="CRUD API for the Dry Beans dataset",
        docs_url="/api-docs",
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.db = database if database is not None else Database()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins(),
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Accept", "Authorization"],
    )
    errors.install_handlers(app)

    app.include_router(beans_router.router, tags=["beans"])

    @app.get("/", response_model=list[schemas.BeanSummary], tags=["beans"])
    async def root(database: Database = Depends(get_database)) -> list[dict]:
        return await service.list_preview(database)

    @app.get("/test-db", response_model=schemas.ProbeResponse, tags=["health"])
    async def test_db(database: Database = Depends(get_database)):
        try:
            return await service.probe(database)
        except errors.ApiError as exc:
            return JSONResponse(
                status_code=500,
                content={"success": False, "message": "Database connection failed", "error": exc.message},
            )

    @app.get("/test-connection", tags=["health"])
    def test_connection() -> dict:
        return {
            "success": True,
            "message": "Server connection test successful",
            "endpoints": {
                "docs": "/api-docs",
                "beans": "/beans",
                "testDb": "/test-db",
            },
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logger.info("Starting Dry Beans API on port %s", settings.port())
    uvicorn.run(app, host="0.0.0.0", port=settings.port(), log_config=None)
