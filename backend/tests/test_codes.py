"""
Unit tests for short code generation.
"""

import pytest

from shortlinks.codes import CodeGenerator
from shortlinks.errors import CapacityExhausted


class TestGenerate:
    """Tests for CodeGenerator.generate."""
    
    def test_default_length_is_seven(self):
        """Generated codes should be 7 characters long."""
        assert len(CodeGenerator().generate()) == 7
    
    def test_codes_use_base62_alphabet(self):
        """Generated codes should only contain [a-zA-Z0-9]."""
        generator = CodeGenerator()
        for _ in range(50):
            code = generator.generate()
            assert all(c in CodeGenerator.ALPHABET for c in code)
    
    def test_generates_unique_codes(self):
        """Codes drawn from a 62^7 space should not repeat in a small sample."""
        generator = CodeGenerator()
        codes = [generator.generate() for _ in range(200)]
        assert len(set(codes)) == 200
    
    def test_custom_length(self):
        assert len(CodeGenerator(length=10).generate()) == 10


class TestAllocate:
    """Tests for CodeGenerator.allocate."""
    
    def test_returns_free_code(self):
        """Should return the first candidate that is not taken."""
        taken = set()
        code = CodeGenerator().allocate(lambda c: c in taken)
        assert len(code) == 7
    
    def test_skips_taken_codes(self, monkeypatch):
        """Should keep generating until a free code comes up."""
        generator = CodeGenerator()
        candidates = iter(["aaaaaaa", "bbbbbbb", "ccccccc"])
        monkeypatch.setattr(generator, "generate", lambda: next(candidates))
        
        code = generator.allocate(lambda c: c in {"aaaaaaa", "bbbbbbb"})
        assert code == "ccccccc"
    
    def test_gives_up_after_max_attempts(self):
        """Should raise CapacityExhausted instead of looping forever."""
        calls = []
        
        def always_taken(code):
            calls.append(code)
            return True
        
        with pytest.raises(CapacityExhausted):
            CodeGenerator(max_attempts=100).allocate(always_taken)
        assert len(calls) == 100
