"""
Tests for the compositor and background color parsing.

Run with:
    pytest tests/test_compositor.py -v
"""
import pytest
from PIL import Image

from app.core.errors import CompositeFailure
from app.models.background import PRESET_COLORS, BackgroundSpec, preset
from app.modules.compositor import parse_hex_color, to_hex
from app.modules.compositor import process as compositor
from conftest import FOREGROUND, encode, make_circle_cutout, open_png


class TestHexColors:
    @pytest.mark.parametrize("value,expected", [
        ("#0000FF", (0, 0, 255)),
        ("#db1514", (219, 21, 20)),
        ("FFFFFF", (255, 255, 255)),
        ("  #000000 ", (0, 0, 0)),
    ])
    def test_parses_six_digit_hex(self, value, expected):
        assert parse_hex_color(value) == expected

    @pytest.mark.parametrize("value", ["#0000FF", "#db1514", "#7f7F7f", "#A0b1C2"])
    def test_round_trips_case_insensitively(self, value):
        rgb = parse_hex_color(value)
        assert all(0 <= channel <= 255 for channel in rgb)
        assert to_hex(rgb).lower() == value.lower()

    @pytest.mark.parametrize("value", ["", "#12", "#fff", "#GGGGGG", "#11223344", "blue", "#12345"])
    def test_rejects_invalid_hex(self, value):
        with pytest.raises(CompositeFailure):
            parse_hex_color(value)


class TestBackgroundSpec:
    @pytest.mark.parametrize("value", [None, "", "transparent", "Transparent", " TRANSPARENT "])
    def test_transparent_sentinel(self, value):
        spec = BackgroundSpec.parse(value)
        assert spec.is_transparent
        assert spec.to_hex() == "transparent"

    def test_color_is_always_opaque(self):
        spec = BackgroundSpec.parse("#DB1514")
        assert spec.rgb == (219, 21, 20)
        assert spec.rgba == (219, 21, 20, 255)
        assert str(spec) == "#DB1514"

    def test_invalid_color_raises_composite_failure(self):
        with pytest.raises(CompositeFailure):
            BackgroundSpec.parse("#zzzzzz")

    def test_presets(self):
        assert [color.id for color in PRESET_COLORS] == ["transparent", "red", "blue", "custom"]
        assert preset("blue").spec.rgb == (0, 0, 255)
        assert preset("transparent").spec.is_transparent
        with pytest.raises(KeyError):
            preset("green")


class TestComposite:
    def test_transparent_is_identity(self):
        cutout = make_circle_cutout((64, 48))
        assert compositor.composite(cutout, BackgroundSpec.transparent()) == cutout

    @pytest.mark.parametrize("color", ["transparent", "#0000FF", "#DB1514", "#FFFFFF"])
    def test_output_keeps_cutout_dimensions(self, color):
        cutout = make_circle_cutout((123, 77))
        result = compositor.composite(cutout, BackgroundSpec.parse(color))
        assert open_png(result).size == (123, 77)

    def test_circle_over_blue(self):
        """500x500 circle cutout over #0000FF: blue corners, untouched opaque center."""
        cutout = make_circle_cutout((500, 500))
        result = open_png(compositor.composite(cutout, BackgroundSpec.parse("#0000FF")))

        assert result.mode == "RGBA"
        for corner in [(0, 0), (499, 0), (0, 499), (499, 499)]:
            assert result.getpixel(corner) == (0, 0, 255, 255)
        assert result.getpixel((250, 250)) == FOREGROUND
        assert result.getchannel("A").getextrema() == (255, 255)

    def test_semi_transparent_pixels_blend_source_over(self):
        cutout = encode(Image.new("RGBA", (4, 4), (255, 0, 0, 128)))
        result = open_png(compositor.composite(cutout, BackgroundSpec.parse("#0000FF")))

        r, g, b, a = result.getpixel((1, 1))
        # 255 * 128/255 + 0 and 0 + 255 * (1 - 128/255)
        assert r == pytest.approx(128, abs=1)
        assert g == 0
        assert b == pytest.approx(127, abs=1)
        assert a == 255

    def test_rgb_cutout_is_accepted(self):
        cutout = encode(Image.new("RGB", (10, 10), (1, 2, 3)))
        result = open_png(compositor.composite(cutout, BackgroundSpec.parse("#FFFFFF")))
        assert result.getpixel((5, 5)) == (1, 2, 3, 255)

    @pytest.mark.parametrize("data", [b"", b"not an image"])
    def test_corrupt_cutout_raises(self, data):
        with pytest.raises(CompositeFailure):
            compositor.composite(data, BackgroundSpec.parse("#FFFFFF"))

    def test_composite_image_in_memory_matches_bytes_variant(self):
        cutout = make_circle_cutout((80, 80))
        spec = BackgroundSpec.parse("#DB1514")
        in_memory = compositor.composite_image(open_png(cutout), spec)
        from_bytes = open_png(compositor.composite(cutout, spec))
        assert list(in_memory.getdata()) == list(from_bytes.getdata())
