"""
Tests for edge-cropped convolution and the fixed blur / sharpen kernels.

Convolution results are checked against a straightforward per-pixel
reference that walks the kernel in row-major order and skips cells
falling outside the image.
"""
import math

import numpy as np
import pytest

from image_processor.errors import InvalidKernel
from image_processor.models.kernel import Channel, Kernel, GAUSSIAN_BLUR, SHARPEN
from image_processor.services.filter_service import FilterService


def reference_convolve(kernel: Kernel, channel: int, src: np.ndarray) -> np.ndarray:
    height, width = src.shape[:2]
    out = src.copy()
    for row in range(height):
        for col in range(width):
            total = 0.0
            for ky in range(kernel.height):
                for kx in range(kernel.width):
                    r = row + ky - kernel.y_offset
                    c = col + kx - kernel.x_offset
                    if 0 <= r < height and 0 <= c < width:
                        total += int(src[r, c, channel]) * kernel.value_at(ky, kx)
            out[row, col, channel] = min(255, max(0, math.trunc(total)))
    return out


@pytest.fixture
def filters() -> FilterService:
    return FilterService()


class TestKernel:
    def test_offsets(self):
        assert (SHARPEN.y_offset, SHARPEN.x_offset) == (2, 2)
        assert (GAUSSIAN_BLUR.height, GAUSSIAN_BLUR.width) == (3, 3)

    @pytest.mark.parametrize("values", [
        [[1, 1], [1, 1]],
        [[1, 1, 1], [1, 1, 1]],
        [],
        [[1, 2, 3], [1, 2]],
    ])
    def test_invalid_shapes(self, values):
        with pytest.raises(InvalidKernel):
            Kernel(values)

    def test_values_are_read_only(self):
        with pytest.raises(ValueError):
            GAUSSIAN_BLUR.values[0, 0] = 1.0

    def test_value_at_bounds(self):
        with pytest.raises(IndexError):
            GAUSSIAN_BLUR.value_at(3, 0)

    def test_blur_weights_sum_to_one(self):
        assert GAUSSIAN_BLUR.values.sum() == pytest.approx(1.0)


class TestApplyKernel:
    def test_uniform_blur_shows_cropped_edges(self, filters):
        src = np.full((3, 3, 3), 100, dtype=np.int32)
        out = filters.gaussian_blur(src)
        expected = [[56, 75, 56], [75, 100, 75], [56, 75, 56]]
        for channel in range(3):
            assert out[:, :, channel].tolist() == expected

    def test_corner_uses_only_in_bounds_cells(self, filters):
        src = np.zeros((4, 4, 3), dtype=np.int32)
        src[0, 0, 0] = 160
        src[0, 1, 0] = 80
        src[1, 0, 0] = 40
        src[1, 1, 0] = 16
        out = filters.apply_kernel(GAUSSIAN_BLUR, Channel.RED, src)
        # 160/4 + 80/8 + 40/8 + 16/16
        assert out[0, 0, 0] == 56

    def test_other_channels_copied(self, filters, random_pixels):
        out = filters.apply_kernel(SHARPEN, Channel.GREEN, random_pixels)
        assert np.array_equal(out[:, :, 0], random_pixels[:, :, 0])
        assert np.array_equal(out[:, :, 2], random_pixels[:, :, 2])

    @pytest.mark.parametrize("kernel", [GAUSSIAN_BLUR, SHARPEN, Kernel([[0.5, -1.0, 2.0]])])
    @pytest.mark.parametrize("channel", list(Channel))
    def test_matches_reference(self, filters, random_pixels, kernel, channel):
        out = filters.apply_kernel(kernel, channel, random_pixels)
        assert np.array_equal(out, reference_convolve(kernel, channel, random_pixels))

    def test_identity_kernel(self, filters, random_pixels):
        out = filters.apply_kernel(Kernel([[1.0]]), Channel.BLUE, random_pixels)
        assert np.array_equal(out, random_pixels)

    def test_kernel_larger_than_image(self, filters):
        with pytest.raises(InvalidKernel):
            filters.apply_kernel(SHARPEN, Channel.RED, np.zeros((4, 9, 3), dtype=np.int32))

    def test_kernel_as_large_as_image(self, filters):
        out = filters.apply_kernel(GAUSSIAN_BLUR, Channel.RED, np.full((3, 3, 3), 16, dtype=np.int32))
        assert out[1, 1, 0] == 16

    def test_source_not_modified(self, filters, random_pixels):
        before = random_pixels.copy()
        filters.sharpen(random_pixels)
        assert np.array_equal(random_pixels, before)


class TestSequencing:
    def test_chain_equals_independent_channels(self, filters, random_pixels):
        chained = filters.sharpen(random_pixels)
        for channel in Channel:
            independent = filters.apply_kernel(SHARPEN, channel, random_pixels)
            assert np.array_equal(chained[:, :, channel], independent[:, :, channel])

    def test_sharpen_stays_in_range(self, filters, random_pixels):
        out = filters.sharpen(random_pixels)
        assert out.min() >= 0 and out.max() <= 255

    def test_repeated_blur_is_deterministic(self, filters, random_pixels):
        once = filters.gaussian_blur(random_pixels)
        twice = filters.gaussian_blur(once)
        assert np.array_equal(filters.gaussian_blur(twice),
                              filters.gaussian_blur(filters.gaussian_blur(filters.gaussian_blur(random_pixels))))
