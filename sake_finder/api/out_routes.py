"""
Outbound redirect route.
Affiliate links are opened through here; only allow-listed hosts are followed.
"""
from fastapi import APIRouter, Depends, Query
from fastapi.responses import RedirectResponse

from sake_finder.api.deps import get_app_settings
from sake_finder.core.config import Settings
from sake_finder.models.schemas import ErrorResponse, OutDryRunResponse
from sake_finder.services.outbound import resolve_destination

router = APIRouter(prefix="/api/out", tags=["redirect"])


@router.get(
    "",
    responses={
        302: {"description": "Redirect to the destination"},
        400: {"model": ErrorResponse, "description": "Missing, invalid or disallowed URL"},
    },
)
async def out(
    url: str = Query("", description="Destination URL"),
    dry: str = Query("", description="'1' to return the destination instead of redirecting"),
    settings: Settings = Depends(get_app_settings),
):
    destination = resolve_destination(url, settings.out_allowed_hosts)
    
    if dry == "1":
        return OutDryRunResponse(final_url=destination).model_dump(by_alias=True)
    
    return RedirectResponse(destination, status_code=302)
