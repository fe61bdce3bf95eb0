"""
Affiliate link wrapping.
Turns a raw product URL into a tracked outbound redirect per marketplace.
"""
from urllib.parse import quote

from sake_finder.core.config import Settings
from sake_finder.models.schemas import Marketplace

MOSHIMO_CLICK_URL = "https://af.moshimo.com/af/c/click"
VALUECOMMERCE_REFERRAL_URL = "https://ck.jp.ap.valuecommerce.com/servlet/referral"

# Same unreserved set as JavaScript's encodeURIComponent
_URI_COMPONENT_SAFE = "-_.!~*'()"


def encode_uri_component(value: str) -> str:
    return quote(value, safe=_URI_COMPONENT_SAFE)


class AffiliateLinkWrapper:
    """
    Deterministic URL template substitution.
    
    Rakuten links go through Moshimo, Yahoo links through ValueCommerce.
    When a partner is not configured the raw URL is returned unchanged.
    """
    
    def __init__(self, settings: Settings):
        self.settings = settings
    
    def wrap(self, raw_url: str, marketplace: Marketplace) -> str:
        """
        Wrap a destination URL for the given marketplace.
        
        Args:
            raw_url: Product or search page URL
            marketplace: Marketplace the URL belongs to
            
        Returns:
            Tracked redirect URL
        """
        if not raw_url:
            return raw_url
        
        if marketplace == Marketplace.RAKUTEN:
            return self._wrap_moshimo(raw_url)
        if marketplace == Marketplace.YAHOO:
            return self._wrap_valuecommerce(raw_url)
        return raw_url
    
    def _wrap_moshimo(self, raw_url: str) -> str:
        s = self.settings
        if not s.moshimo_configured:
            return raw_url
        return (
            f"{MOSHIMO_CLICK_URL}?a_id={s.moshimo_a_id}&p_id={s.moshimo_p_id}"
            f"&pc_id={s.moshimo_pc_id}&pl_id={s.moshimo_pl_id}"
            f"&url={encode_uri_component(raw_url)}"
        )
    
    def _wrap_valuecommerce(self, raw_url: str) -> str:
        s = self.settings
        if not s.valuecommerce_configured:
            return raw_url
        return (
            f"{VALUECOMMERCE_REFERRAL_URL}?sid={s.valuecommerce_sid}&pid={s.valuecommerce_pid}"
            f"&vc_url={encode_uri_component(raw_url)}"
        )
