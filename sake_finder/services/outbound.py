"""
Outbound redirect validation.
Wrapped links are opened through /api/out, which only redirects to known hosts.
"""
from typing import Iterable, Optional
from urllib.parse import urlparse


class OutboundUrlError(Exception):
    """Destination URL rejected by the redirector."""
    def __init__(self, code: str, detail: str, host: Optional[str] = None):
        self.code = code
        self.detail = detail
        self.host = host
        super().__init__(detail)


def resolve_destination(raw_url: str, allowed_hosts: Iterable[str]) -> str:
    """
    Validate a redirect destination against the host allow-list.
    
    Args:
        raw_url: Destination requested by the client
        allowed_hosts: Exact host names that may be redirected to
        
    Returns:
        Normalized destination URL
        
    Raises:
        OutboundUrlError: URL missing, unparsable, or host not allowed
    """
    if not raw_url:
        raise OutboundUrlError("url_required", "url is required")
    
    try:
        parsed = urlparse(raw_url.strip())
    except ValueError as e:
        raise OutboundUrlError("invalid_url", str(e)) from e
    
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise OutboundUrlError("invalid_url", "url must be an absolute http(s) URL")
    
    host = parsed.netloc.lower()
    if host not in set(allowed_hosts):
        raise OutboundUrlError("host_not_allowed", "destination host is not allowed", host=host)
    
    return parsed.geturl()
