"""
Tests for search keyword normalization.
"""
import pytest

from sake_finder.services.query_normalizer import loosen_query, normalize_query, parse_volume_ml


class TestNormalizeQuery:
    """Test cases for normalize_query."""
    
    def test_full_width_brackets_and_noise(self):
        raw = "獺祭　【純米大吟醸】（720 ml）送料無料"
        assert normalize_query(raw) == "獺祭 純米大吟醸 720ml"
    
    def test_volume_canonicalization(self):
        test_cases = [
            ("八海山 1.8L", "八海山 1800ml"),
            ("八海山 1.8 l", "八海山 1800ml"),
            ("久保田 一升瓶", "久保田 1800ml"),
            ("十四代 ７２０ｍｌ", "十四代 720ml"),
            ("而今 720ML", "而今 720ml"),
        ]
        
        for raw, expected in test_cases:
            assert normalize_query(raw) == expected, f"Raw: {raw}"
    
    def test_noise_words_removed(self):
        assert normalize_query("新政 No.6 公式 正規品 限定") == "新政 No.6"
        assert normalize_query("Dassai official Free Shipping") == "Dassai"
    
    def test_whitespace_collapsed(self):
        assert normalize_query("  黒龍 　　 いっちょらい  ") == "黒龍 いっちょらい"
    
    def test_empty_input(self):
        assert normalize_query("") == ""
        assert normalize_query("   ") == ""
    
    @pytest.mark.parametrize(
        "raw",
        [
            "獺祭　【純米大吟醸】（720 ml）送料無料",
            "八海山 1.8L ギフト",
            "Junmai Ginjo gift",
            "久保田 千寿 一升 ・ 箱入り",
            "十四代 ７２０ｍｌ ポイント10倍",
            "八海山 1.8 送料無料 L",
            "獺祭 720 公式 ml",
        ],
    )
    def test_idempotent(self, raw):
        once = normalize_query(raw)
        assert normalize_query(once) == once
    
    def test_noise_between_number_and_unit(self):
        assert normalize_query("八海山 1.8 送料無料 L") == "八海山 1800ml"
        assert normalize_query("獺祭 720 公式 ml") == "獺祭 720ml"


class TestLoosenQuery:
    """Test cases for loosen_query."""
    
    def test_strips_packaging_and_volume(self):
        assert loosen_query("獺祭 純米大吟醸 720ml ギフト箱 セット") == "獺祭 純米大吟醸"
    
    def test_strips_english_gift(self):
        assert loosen_query("Junmai Ginjo gift") == "Junmai Ginjo"
    
    def test_keeps_words_containing_set(self):
        assert loosen_query("sunset brewery") == "sunset brewery"
    
    def test_empty_input(self):
        assert loosen_query("") == ""


class TestParseVolume:
    """Test cases for parse_volume_ml."""
    
    def test_parse(self):
        test_cases = [
            ("獺祭 純米大吟醸 45 720ml", 720),
            ("Dassai 45 1.8L", 1800),
            ("久保田 萬寿 一升瓶", 1800),
            ("十四代 四合瓶", 720),
            ("黒龍 300 ml", 300),
            ("純米吟醸 化粧箱入り", None),
            ("", None),
        ]
        
        for title, expected in test_cases:
            assert parse_volume_ml(title) == expected, f"Title: {title}"
