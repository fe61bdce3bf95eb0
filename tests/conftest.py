"""
Pytest configuration and shared fixtures.
"""
import json
from typing import Callable, Optional

import httpx
import pytest

from sake_finder.core.config import Settings
from sake_finder.models.schemas import Item, Marketplace
from sake_finder.services.affiliate import AffiliateLinkWrapper


def make_settings(**overrides) -> Settings:
    """Fully configured settings that ignore the process environment's .env file."""
    values = dict(
        rakuten_app_id="rk-app",
        yahoo_app_id="yh-app",
        moshimo_a_id="1",
        moshimo_p_id="2",
        moshimo_pc_id="3",
        moshimo_pl_id="4",
        valuecommerce_sid="3",
        valuecommerce_pid="88",
        upstream_timeout=1.0,
        adapter_deadline=2.0,
        no_filter=False,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_item(
    title: str,
    price: Optional[int] = 3000,
    source: Marketplace = Marketplace.RAKUTEN,
    item_id: Optional[str] = None,
    image: Optional[str] = "https://img.example.jp/x.jpg",
    order: int = 0,
) -> Item:
    return Item(
        id=item_id or f"{source.value}:{title}",
        title=title,
        price=price,
        image=image,
        shop="酒屋",
        source=source,
        url=f"https://example.jp/{source.value}/item",
        order=order,
    )


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def json_response(payload, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code,
        content=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
        headers={"Content-Type": "application/json"},
    )


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def wrapper(settings):
    return AffiliateLinkWrapper(settings)
