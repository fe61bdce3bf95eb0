"""
Main FastAPI application.
Sake Finder API.
"""
import logging
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sake_finder import __version__
from sake_finder.api.out_routes import router as out_router
from sake_finder.api.ranking_routes import router as ranking_router
from sake_finder.api.search_routes import router as search_router
from sake_finder.collectors.rakuten import RakutenAdapter
from sake_finder.collectors.yahoo import YahooAdapter
from sake_finder.core.config import get_settings
from sake_finder.models.schemas import ErrorResponse, HealthResponse, SearchInputError
from sake_finder.services.affiliate import AffiliateLinkWrapper
from sake_finder.services.outbound import OutboundUrlError
from sake_finder.services.ranking import RankingService
from sake_finder.services.search_pipeline import SearchPipeline

settings = get_settings()

logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        (
            structlog.processors.JSONRenderer(ensure_ascii=False)
            if settings.log_format == "json"
            else structlog.dev.ConsoleRenderer()
        ),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting Sake Finder API", env=settings.app_env)
    
    wrapper = AffiliateLinkWrapper(settings)
    rakuten = RakutenAdapter(settings, wrapper)
    yahoo = YahooAdapter(settings, wrapper)
    
    app.state.rakuten_adapter = rakuten
    app.state.search_pipeline = SearchPipeline(settings, [rakuten, yahoo], wrapper)
    app.state.ranking_service = RankingService(settings, rakuten)
    
    if not settings.rakuten_api_configured:
        logger.warning("RAKUTEN_APP_ID not set, Rakuten results disabled")
    if not settings.yahoo_api_configured:
        logger.warning("YAHOO_APP_ID not set, Yahoo results disabled")
    
    yield
    
    # Shutdown
    logger.info("Shutting down Sake Finder API")
    await rakuten.close()
    await yahoo.close()


# Create application
app = FastAPI(
    title="Sake Finder API",
    description="""
    日本酒の検索・おすすめ API

    ## 主な機能

    * **商品検索**: 楽天市場と Yahoo!ショッピングを同時に検索し、重複をまとめてランキング
    * **ギフトモード**: 贈り物向けのセット商品や価格帯を優先
    * **人気ランキング**: レビュー数と評価から人気の日本酒を表示
    * **外部リンク**: 許可済みホストのみへリダイレクト
    """,
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {
            "name": "root",
            "description": "基本エンドポイント"
        },
        {
            "name": "health",
            "description": "サービス状態の確認"
        },
        {
            "name": "search",
            "description": "商品検索 API"
        },
        {
            "name": "ranking",
            "description": "人気ランキング API"
        },
        {
            "name": "redirect",
            "description": "アフィリエイトリンクのリダイレクト"
        }
    ],
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, error: str, detail: str = None, host: str = None) -> JSONResponse:
    body = ErrorResponse(error=error, detail=detail, host=host)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@app.exception_handler(SearchInputError)
async def search_input_error_handler(request: Request, exc: SearchInputError):
    """Reject bad search input before it reaches the pipeline."""
    logger.info("Rejected search input", path=request.url.path, code=exc.code)
    return _error(400, exc.code, exc.detail)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Report request validation failures as 400 with a structured body."""
    fields = ", ".join(".".join(str(p) for p in err.get("loc", ())) for err in exc.errors())
    return _error(400, "invalid_request", f"invalid parameters: {fields}")


@app.exception_handler(OutboundUrlError)
async def outbound_error_handler(request: Request, exc: OutboundUrlError):
    logger.warning("Rejected outbound redirect", code=exc.code, host=exc.host)
    return _error(400, exc.code, exc.detail, host=exc.host)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions without leaking internals."""
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=exc,
    )
    failure = "search_failed" if request.url.path.startswith("/api/search") else "request_failed"
    return _error(500, "internal_error", failure)


# Include API routes
app.include_router(search_router)
app.include_router(ranking_router)
app.include_router(out_router)


@app.get("/", tags=["root"])
async def root():
    """Root endpoint."""
    return {
        "service": "Sake Finder",
        "version": __version__,
        "docs": "/docs"
    }


@app.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check():
    """
    Health check endpoint.
    
    Reports which upstream credentials are configured.
    """
    rakuten_status = "configured" if settings.rakuten_api_configured else "not_configured"
    yahoo_status = "configured" if settings.yahoo_api_configured else "not_configured"
    affiliate_status = (
        "configured"
        if settings.moshimo_configured and settings.valuecommerce_configured
        else "partial" if settings.moshimo_configured or settings.valuecommerce_configured
        else "not_configured"
    )
    
    overall_status = (
        "healthy"
        if settings.rakuten_api_configured or settings.yahoo_api_configured
        else "degraded"
    )
    
    return HealthResponse(
        status=overall_status,
        version=__version__,
        rakuten_api=rakuten_status,
        yahoo_api=yahoo_status,
        affiliate=affiliate_status,
    )


if __name__ == "__main__":
    import uvicorn
    
    uvicorn.run(
        "sake_finder.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.app_debug,
    )
