"""
Tests for shared adapter helpers.
"""
import pytest

from sake_finder.collectors.base import parse_json_body, to_price


class TestToPrice:
    """Test cases for to_price."""
    
    @pytest.mark.parametrize(
        "value, expected",
        [
            (2200, 2200),
            (2200.9, 2200),
            ("3,300", 3300),
            ("1650円", 1650),
            ({"_value": "2420"}, 2420),
            (-1, None),
            (None, None),
            (True, None),
            ("時価", None),
        ],
    )
    def test_coercion(self, value, expected):
        assert to_price(value) == expected
    
    @pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan"), "inf", "nan", {"_value": "1e999"}])
    def test_non_finite_is_unpriced(self, value):
        assert to_price(value) is None


class TestParseJsonBody:
    """Test cases for parse_json_body."""
    
    def test_decodes_objects_and_arrays(self):
        assert parse_json_body('  {"hits": []}') == {"hits": []}
        assert parse_json_body("[1, 2]") == [1, 2]
    
    def test_rejects_non_json(self):
        assert parse_json_body("<html>maintenance</html>") is None
        assert parse_json_body("") is None
        assert parse_json_body("{broken") is None
    
    def test_overflowing_number_decodes_as_inf(self):
        assert to_price(parse_json_body('{"price": 1e999}')["price"]) is None
