import numpy as np
import pytest

from topcodes.buffer import PixelBuffer, PixelBufferError


def test_from_array_infers_layout():
    assert PixelBuffer.from_array(np.zeros((4, 5), np.uint8)).layout == "L"
    assert PixelBuffer.from_array(np.zeros((4, 5, 3), np.uint8)).layout == "RGB"
    assert PixelBuffer.from_array(np.zeros((4, 5, 4), np.uint8)).layout == "RGBA"


def test_layout_aliases_are_normalized():
    buf = PixelBuffer(data=bytes(20), width=5, height=4, layout="gray")
    assert buf.layout == "L"
    assert buf.shape == (4, 5)


def test_luminance_averages_colour_and_ignores_alpha():
    px = np.array([[[30, 60, 90, 255], [0, 0, 0, 0]]], dtype=np.uint8)
    lum = PixelBuffer.from_array(px).luminance()
    assert lum.shape == (1, 2)
    assert lum[0, 0] == pytest.approx(60.0)
    assert lum[0, 1] == pytest.approx(0.0)


def test_padded_stride_skips_row_padding():
    # 2x2 RGB with 2 bytes of padding per row
    raw = bytes([10, 10, 10, 20, 20, 20, 99, 99,
                 30, 30, 30, 40, 40, 40, 99, 99])
    buf = PixelBuffer(data=raw, width=2, height=2, layout="BGR", stride=8)
    np.testing.assert_allclose(buf.luminance(), [[10, 20], [30, 40]])


def test_last_row_may_omit_padding():
    raw = bytes([1, 2, 0, 0, 3, 4])
    buf = PixelBuffer(data=raw, width=2, height=2, layout="L", stride=4)
    np.testing.assert_allclose(buf.luminance(), [[1, 2], [3, 4]])


@pytest.mark.parametrize(
    "kwargs, message",
    [
        (dict(data=bytes(16), width=0, height=4, layout="L"), "dimensions"),
        (dict(data=bytes(16), width=4, height=4, layout="CMYK"), "Unsupported channel layout"),
        (dict(data=bytes(48), width=4, height=4, layout="RGB", stride=10), "Stride"),
        (dict(data=bytes(10), width=4, height=4, layout="L"), "needs at least 16"),
        (dict(data=object(), width=1, height=1, layout="L"), "Unsupported buffer type"),
    ],
)
def test_inconsistent_buffers_are_rejected(kwargs, message):
    with pytest.raises(PixelBufferError, match=message):
        PixelBuffer(**kwargs)


def test_from_array_rejects_non_uint8():
    with pytest.raises(PixelBufferError, match="8-bit"):
        PixelBuffer.from_array(np.zeros((4, 4), dtype=np.float32))


def test_from_array_rejects_mismatched_layout():
    with pytest.raises(PixelBufferError, match="does not match"):
        PixelBuffer.from_array(np.zeros((4, 4, 3), np.uint8), layout="RGBA")


def test_buffer_errors_are_value_errors():
    assert issubclass(PixelBufferError, ValueError)
