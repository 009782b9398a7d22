from __future__ import annotations

import numpy as np
import pytest

from util.color import luma, normalize_color, parse_hex_color_str, to_u8_rgba


def _approx_tuple(t, p=1e-6):
    return tuple(round(v, 6) for v in t)


def test_parse_hex_color_valid_variants() -> None:
    assert _approx_tuple(parse_hex_color_str("#112233")) == (
        round(0x11 / 255.0, 6),
        round(0x22 / 255.0, 6),
        round(0x33 / 255.0, 6),
        1.0,
    )
    assert _approx_tuple(parse_hex_color_str("0x112233CC"))[3] == round(0xCC / 255.0, 6)
    assert parse_hex_color_str("ffffff") == (1.0, 1.0, 1.0, 1.0)


def test_parse_hex_color_invalid() -> None:
    with pytest.raises(ValueError):
        parse_hex_color_str("#123")
    with pytest.raises(ValueError):
        parse_hex_color_str("#GGHHII")


def test_normalize_color_accepts_unit_and_byte_ranges() -> None:
    assert normalize_color((0.5, 0.25, 1.0)) == (0.5, 0.25, 1.0, 1.0)
    assert normalize_color([255, 0, 0, 128]) == (1.0, 0.0, 0.0, 128 / 255.0)
    assert normalize_color(np.array([0.1, 0.2, 0.3, 0.4])) == pytest.approx((0.1, 0.2, 0.3, 0.4))
    assert normalize_color(0.5) == (0.5, 0.5, 0.5, 1.0)
    assert normalize_color(-1.0) == (0.0, 0.0, 0.0, 1.0)


def test_normalize_color_rejects_bad_values() -> None:
    with pytest.raises(ValueError):
        normalize_color((0.1, 0.2))
    with pytest.raises(ValueError):
        normalize_color((0.1, float("nan"), 0.2))
    with pytest.raises(ValueError):
        normalize_color(object())


def test_luma_and_u8() -> None:
    assert luma((1.0, 1.0, 1.0)) == 1.0
    assert luma((0.0, 0.0, 1.0)) == pytest.approx(0.114)
    assert to_u8_rgba("#80808080") == (128, 128, 128, 128)
