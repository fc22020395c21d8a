from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from typing import Optional
import datetime
import logging

from config.settings import Settings
from observability.logging import setup_logging
from observability.prometheus_metrics import setup_prometheus_metrics
from pipelines.security import SSRFError
from services.search import SearchService, OriginResolutionError
from .security.cors import setup_cors

API_VERSION = "0.1.0"

logger = logging.getLogger(__name__)

class SearchRequest(BaseModel):
    query: str = ""
    origin: Optional[str] = None
    website: Optional[str] = None
    limit: Optional[int] = Field(default=None, ge=1, le=100)

def _client_error(message: str, status_code: int = 400, **extra) -> JSONResponse:
    return JSONResponse({"results": [], "message": message, **extra}, status_code=status_code)

def create_app(service: Optional[SearchService] = None, settings: Optional[Settings] = None) -> FastAPI:
    """Build the API around a search service.

    Tests pass a service wired to a fake fetcher; production builds one from
    settings.
    """
    settings = settings or Settings.from_env()
    service = service or SearchService.from_settings(settings)

    app = FastAPI(title="SiteNav Index API", version=API_VERSION)
    app.state.search_service = service

    setup_cors(app, settings.allowed_origins)
    setup_prometheus_metrics(app, version=API_VERSION)

    @app.on_event("shutdown")
    async def shutdown_event():
        """Close the outbound HTTP session."""
        await service.close()
        logger.info("Search service closed")

    @app.get("/")
    async def root():
        """Root endpoint with API information."""
        return {
            "message": "SiteNav Index API",
            "version": API_VERSION,
            "docs": "/docs",
            "health": "/health-check",
            "metrics": "/metrics"
        }

    @app.get("/health-check")
    def health_check():
        response = service.health()
        response["time"] = datetime.datetime.now(datetime.timezone.utc).isoformat()
        return response

    @app.post("/search")
    async def search(req: SearchRequest, request: Request):
        """Rank one origin's sections against a query."""
        try:
            return await service.search(
                req.query,
                origin=req.origin,
                website=req.website,
                origin_header=request.headers.get("origin"),
                referer=request.headers.get("referer"),
                limit=req.limit
            )
        except (OriginResolutionError, SSRFError) as e:
            logger.info(f"Rejected search request: {e}")
            return _client_error(str(e))
        except Exception:
            logger.exception(f"Search error for query {req.query!r}")
            return _client_error("Search failed.", status_code=500)

    @app.get("/website-index")
    async def website_index(origin: Optional[str] = None, refresh: bool = False):
        """Return the cached index of an origin, building it if needed."""
        if not origin:
            return _client_error("Missing 'origin' query parameter.", count=0, sections=[])
        try:
            return await service.website_index(origin, refresh=refresh)
        except (OriginResolutionError, SSRFError) as e:
            return _client_error(str(e), count=0, sections=[])
        except Exception:
            logger.exception(f"Indexing error for {origin}")
            return _client_error("Indexing failed.", status_code=500, count=0, sections=[])

    @app.delete("/website-index")
    def invalidate_website_index(origin: Optional[str] = None):
        """Drop an origin's cached index."""
        if not origin:
            return _client_error("Missing 'origin' query parameter.")
        try:
            return service.invalidate(origin)
        except OriginResolutionError as e:
            return _client_error(str(e))

    return app

settings = Settings.from_env()
setup_logging(level=settings.log_level, log_file=settings.log_file, use_json=settings.log_json)
app = create_app(settings=settings)

def main():
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)

if __name__ == "__main__":
    main()
