"""
FastAPI dependencies.
Components are built once in the lifespan handler and kept on app.state.
"""
from fastapi import Request

from sake_finder.collectors.rakuten import RakutenAdapter
from sake_finder.core.config import Settings, get_settings
from sake_finder.services.ranking import RankingService
from sake_finder.services.search_pipeline import SearchPipeline


def get_app_settings() -> Settings:
    return get_settings()


def get_search_pipeline(request: Request) -> SearchPipeline:
    return request.app.state.search_pipeline


def get_ranking_service(request: Request) -> RankingService:
    return request.app.state.ranking_service


def get_rakuten_adapter(request: Request) -> RakutenAdapter:
    return request.app.state.rakuten_adapter
