"""
Unit tests for purchase order code generation.
"""
import logging
import random
from datetime import date

import pytest

from purchasing.errors import RemoteRequestError
from purchasing.order_numbers import FALLBACK_PATTERN, OrderNumberGenerator, fallback_order_code


class _Sequence:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = 0

    def generate_order_number(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result


@pytest.mark.unit
class TestOrderNumberGenerator:
    """Tests for OrderNumberGenerator."""

    def test_uses_sequence_value(self):
        sequence = _Sequence(result="OC-20240315-0007")
        generator = OrderNumberGenerator(sequence)

        assert generator.generate() == "OC-20240315-0007"
        assert sequence.calls == 1

    def test_falls_back_when_sequence_raises(self, caplog):
        sequence = _Sequence(error=RemoteRequestError("rpc failed", status=500))
        generator = OrderNumberGenerator(sequence, today=lambda: date(2024, 3, 15))

        with caplog.at_level(logging.WARNING, logger="purchasing.order_numbers"):
            code = generator.generate()

        assert FALLBACK_PATTERN.match(code)
        assert code.startswith("OC-20240315-")
        assert "fallback" in caplog.text

    def test_falls_back_on_unexpected_error(self):
        generator = OrderNumberGenerator(_Sequence(error=RuntimeError("boom")))
        assert FALLBACK_PATTERN.match(generator.generate())

    @pytest.mark.parametrize("empty", [None, "", "   "])
    def test_falls_back_on_empty_sequence_value(self, empty):
        generator = OrderNumberGenerator(_Sequence(result=empty))
        assert FALLBACK_PATTERN.match(generator.generate())

    def test_without_sequence_always_falls_back(self):
        generator = OrderNumberGenerator(None, today=lambda: date(2025, 1, 2))
        assert generator.generate().startswith("OC-20250102-")


@pytest.mark.unit
class TestFallbackCode:

    def test_suffix_is_zero_padded(self):
        class _Zero(random.Random):
            def randint(self, a, b):
                return 7

        assert fallback_order_code(date(2024, 3, 15), _Zero()) == "OC-20240315-0007"

    def test_suffix_stays_in_range(self):
        rng = random.Random(1234)
        for _ in range(200):
            code = fallback_order_code(date(2024, 12, 31), rng)
            assert FALLBACK_PATTERN.match(code)
            assert 0 <= int(code[-4:]) <= 9999
