"""
Tests for affiliate link wrapping and outbound redirect validation.
"""
import pytest

from sake_finder.models.schemas import Marketplace
from sake_finder.services.affiliate import AffiliateLinkWrapper
from sake_finder.services.outbound import OutboundUrlError, resolve_destination

from tests.conftest import make_settings


class TestAffiliateLinkWrapper:
    """Test cases for AffiliateLinkWrapper."""
    
    def test_wrap_rakuten_with_moshimo(self, wrapper):
        raw = "https://item.rakuten.co.jp/shop/abc/?x=1&y=2"
        
        assert wrapper.wrap(raw, Marketplace.RAKUTEN) == (
            "https://af.moshimo.com/af/c/click?a_id=1&p_id=2&pc_id=3&pl_id=4"
            "&url=https%3A%2F%2Fitem.rakuten.co.jp%2Fshop%2Fabc%2F%3Fx%3D1%26y%3D2"
        )
    
    def test_wrap_yahoo_with_valuecommerce(self, wrapper):
        raw = "https://store.shopping.yahoo.co.jp/shop/item.html"
        
        assert wrapper.wrap(raw, Marketplace.YAHOO) == (
            "https://ck.jp.ap.valuecommerce.com/servlet/referral?sid=3&pid=88"
            "&vc_url=https%3A%2F%2Fstore.shopping.yahoo.co.jp%2Fshop%2Fitem.html"
        )
    
    def test_non_ascii_is_percent_encoded(self, wrapper):
        raw = "https://search.rakuten.co.jp/search/mall/獺祭/"
        wrapped = wrapper.wrap(raw, Marketplace.RAKUTEN)
        
        assert "%E7%8D%BA%E7%A5%AD" in wrapped
        assert "獺祭" not in wrapped
    
    def test_deterministic(self, wrapper):
        raw = "https://item.rakuten.co.jp/shop/abc/"
        
        assert wrapper.wrap(raw, Marketplace.RAKUTEN) == wrapper.wrap(raw, Marketplace.RAKUTEN)
    
    def test_unconfigured_partner_returns_raw_url(self):
        wrapper = AffiliateLinkWrapper(make_settings(moshimo_a_id="", valuecommerce_sid=""))
        raw = "https://item.rakuten.co.jp/shop/abc/"
        
        assert wrapper.wrap(raw, Marketplace.RAKUTEN) == raw
        assert wrapper.wrap(raw, Marketplace.YAHOO) == raw


class TestResolveDestination:
    """Test cases for the outbound host allow-list."""
    
    ALLOWED = ["af.moshimo.com", "ck.jp.ap.valuecommerce.com"]
    
    def test_allowed_host(self):
        url = "https://af.moshimo.com/af/c/click?a_id=1&url=x"
        
        assert resolve_destination(url, self.ALLOWED) == url
    
    def test_disallowed_host(self):
        with pytest.raises(OutboundUrlError) as exc_info:
            resolve_destination("https://evil.example.com/phish", self.ALLOWED)
        
        assert exc_info.value.code == "host_not_allowed"
        assert exc_info.value.host == "evil.example.com"
    
    def test_lookalike_host_rejected(self):
        with pytest.raises(OutboundUrlError) as exc_info:
            resolve_destination("https://af.moshimo.com.evil.io/x", self.ALLOWED)
        
        assert exc_info.value.code == "host_not_allowed"
    
    def test_missing_url(self):
        with pytest.raises(OutboundUrlError) as exc_info:
            resolve_destination("", self.ALLOWED)
        
        assert exc_info.value.code == "url_required"
    
    def test_invalid_url(self):
        invalid_urls = [
            "not a url",
            "ftp://af.moshimo.com/file",
            "/relative/path",
        ]
        
        for url in invalid_urls:
            with pytest.raises(OutboundUrlError) as exc_info:
                resolve_destination(url, self.ALLOWED)
            assert exc_info.value.code == "invalid_url", f"URL: {url}"
