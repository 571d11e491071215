"""
Trebound Data Access - Main FastAPI Application
Cached, deduplicated content loading and free-text search over the catalog
"""
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query, Request

from config.settings import settings
from trebound.context import DataAccess
from trebound.loader.bundles import available_bundles
from trebound.schemas import (
    BatchResultOut,
    BundleResponse,
    ClearCacheResponse,
    SearchRequest,
)

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Version tracking
APP_VERSION = "v0.1.0"
APP_NAME = "Trebound Data Access"


def create_app(data_access: Optional[DataAccess] = None) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        data_access: Pre-built context (tests); built from settings otherwise
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        data = data_access or DataAccess.from_settings(settings)
        await data.start()
        app.state.data = data
        try:
            yield
        finally:
            await data.close()

    app = FastAPI(
        title=APP_NAME,
        description="Batched, cached content loading and search for the Trebound catalog",
        version=APP_VERSION,
        lifespan=lifespan,
    )

    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "ok"}

    @app.get("/version")
    def version_info():
        """Version information endpoint."""
        return {
            "name": APP_NAME,
            "version": APP_VERSION,
            "full": f"{APP_NAME} {APP_VERSION}",
        }

    @app.get("/cache/stats")
    async def cache_stats(req: Request):
        """Get cache statistics."""
        return req.app.state.data.get_cache_stats()

    @app.delete("/cache", response_model=ClearCacheResponse)
    async def clear_cache(
        req: Request,
        keys: Optional[List[str]] = Query(None, description="Keys to clear (all if omitted)"),
    ):
        """Clear the whole cache, or only the given keys."""
        cleared = req.app.state.data.clear_cache(keys)
        return ClearCacheResponse(cleared=cleared, keys=keys)

    # =========================================================================
    # SEARCH API
    # =========================================================================

    @app.post("/api/search")
    async def api_search(request: SearchRequest, req: Request):
        """
        Search activities, venues and destinations.

        Always returns a renderable result: answer, ranked results per
        category, suggestions and a confidence value.
        """
        result = await req.app.state.data.search(request.query)
        return result.to_dict()

    @app.get("/api/search")
    async def api_search_get(
        req: Request,
        q: str = Query(..., description="Search query"),
    ):
        """
        GET version of search endpoint for simple queries.

        Example: /api/search?q=cooking%20team%20building
        """
        result = await req.app.state.data.search(q)
        return result.to_dict()

    # =========================================================================
    # BUNDLES
    # =========================================================================

    @app.get("/api/bundles/{name}", response_model=BundleResponse)
    async def load_bundle(name: str, req: Request):
        """Load a named bundle (homepage, essentials, counts, search-corpus, preload-*)."""
        try:
            results = await req.app.state.data.load_bundle(name)
        except KeyError:
            raise HTTPException(
                status_code=404,
                detail=f"Unknown bundle {name!r}. Available: {', '.join(available_bundles())}",
            )

        return BundleResponse(
            bundle=name,
            count=len(results),
            failed=sum(1 for r in results.values() if not r.ok),
            results={key: BatchResultOut(**r.to_dict()) for key, r in results.items()},
        )

    return app


app = create_app()
