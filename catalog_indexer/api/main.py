# Load environment variables from .env file first, before any other imports
from dotenv import load_dotenv
load_dotenv()

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from catalog_indexer.api.dependencies import clear_service_cache, get_product_index
from catalog_indexer.api.routes import etl, search
from catalog_indexer.config import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Validate configuration and make sure the Qdrant collection exists
    before serving requests. A missing credential stops startup.
    """
    settings = get_settings()
    logger.info(f"Starting catalog indexer for collection {settings.collection_name}")
    await get_product_index().ensure_collection()

    yield

    await get_product_index().close()
    clear_service_cache()
    logger.info("Service cache cleared")


def create_app() -> FastAPI:
    app = FastAPI(title="Catalog Indexing Service", version="1.0.0", lifespan=lifespan)

    app.include_router(etl.router, prefix="/etl", tags=["etl"])
    app.include_router(search.router, tags=["search"])

    @app.get("/health")
    def health_check():
        return {"status": "healthy"}

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host="0.0.0.0", port=8000)
