"""Trimap generation from foreground masks."""

import numpy as np
import pytest

from video_bg_eraser.matting.trimap import (
    MorphologyConfig,
    TrimapGenerator,
    TrimapValue,
    split_trimap,
)

ADMISSIBLE = {int(v) for v in TrimapValue}


def square_mask(shape=(100, 100), top=30, left=30, size=40):
    mask = np.zeros(shape, dtype=bool)
    mask[top:top + size, left:left + size] = True
    return mask


class TestGenerate:
    def test_regions_of_a_square(self):
        trimap = TrimapGenerator().generate(square_mask())

        assert trimap.dtype == np.uint8
        assert trimap[50, 50] == TrimapValue.FOREGROUND
        assert trimap[30, 50] == TrimapValue.UNKNOWN
        assert trimap[29, 50] == TrimapValue.UNKNOWN
        assert trimap[27, 50] == TrimapValue.BACKGROUND
        assert trimap[0, 0] == TrimapValue.BACKGROUND

    def test_only_admissible_values(self):
        mask = np.random.default_rng(4).random((60, 80)) < 0.5

        trimap = TrimapGenerator().generate(mask)

        assert set(np.unique(trimap)) <= ADMISSIBLE

    def test_definite_regions_follow_the_mask(self):
        mask = np.random.default_rng(5).random((60, 80)) < 0.7

        trimap = TrimapGenerator().generate(mask)

        # Definite foreground lies inside the mask, definite background outside it
        assert not np.any((trimap == TrimapValue.FOREGROUND) & ~mask)
        assert not np.any((trimap == TrimapValue.BACKGROUND) & mask)

    def test_all_background(self):
        trimap = TrimapGenerator().generate(np.zeros((20, 30), dtype=bool))

        assert np.all(trimap == TrimapValue.BACKGROUND)

    def test_all_foreground(self):
        trimap = TrimapGenerator().generate(np.ones((20, 30), dtype=bool))

        assert np.all(trimap == TrimapValue.FOREGROUND)

    def test_fewer_erosions_widen_the_core(self):
        wide = TrimapGenerator(MorphologyConfig(erode_iterations=2)).generate(square_mask())
        narrow = TrimapGenerator().generate(square_mask())

        assert np.count_nonzero(wide == 255) > np.count_nonzero(narrow == 255)


class TestGenerateScaled:
    @pytest.mark.parametrize("scale", [0.25, 0.5, 0.75])
    def test_full_size_and_admissible(self, scale):
        trimap = TrimapGenerator().generate_scaled(square_mask((90, 120)), scale)

        assert trimap.shape == (90, 120)
        assert set(np.unique(trimap)) <= ADMISSIBLE

    def test_unit_scale_matches_generate(self):
        generator = TrimapGenerator()
        mask = square_mask()

        np.testing.assert_array_equal(generator.generate_scaled(mask, 1.0), generator.generate(mask))

    @pytest.mark.parametrize("scale", [0.0, -0.5, 1.5])
    def test_invalid_scale(self, scale):
        with pytest.raises(ValueError):
            TrimapGenerator().generate_scaled(square_mask(), scale)


class TestSplitTrimap:
    def test_partition(self):
        trimap = np.array([[0, 128, 255]], dtype=np.uint8)

        is_bg, is_unknown, is_fg = split_trimap(trimap)

        np.testing.assert_array_equal(is_bg, [[True, False, False]])
        np.testing.assert_array_equal(is_unknown, [[False, True, False]])
        np.testing.assert_array_equal(is_fg, [[False, False, True]])


class TestMorphologyConfig:
    def test_rejects_bad_kernel(self):
        with pytest.raises(ValueError):
            MorphologyConfig(kernel_size=0)

    def test_rejects_negative_iterations(self):
        with pytest.raises(ValueError):
            MorphologyConfig(erode_iterations=-1)
