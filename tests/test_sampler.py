import numpy as np
import pytest

from omr.errors import OutOfBounds
from omr.layout import PixelRect
from omr.sampler import region_density


@pytest.fixture
def field():
    field = np.zeros((50, 40), dtype=bool)
    field[10:20, 10:20] = True
    return field


class TestRegionDensity:
    def test_fully_dark(self, field):
        assert region_density(field, PixelRect(10, 10, 10, 10)) == 1.0

    def test_fully_light(self, field):
        assert region_density(field, PixelRect(25, 25, 10, 10)) == 0.0

    def test_fraction(self, field):
        # 5 of 20 columns are dark
        assert region_density(field, PixelRect(15, 10, 20, 10)) == pytest.approx(0.25)

    def test_partial_overlap_uses_inside_part(self, field):
        field[:, 35:] = True
        assert region_density(field, PixelRect(35, 0, 20, 10)) == 1.0

    def test_fully_outside_raises(self, field):
        with pytest.raises(OutOfBounds, match="outside"):
            region_density(field, PixelRect(40, 0, 5, 5))

    def test_negative_origin_outside_raises(self, field):
        with pytest.raises(OutOfBounds):
            region_density(field, PixelRect(-10, -10, 5, 5))

    def test_empty_rectangle_raises(self, field):
        with pytest.raises(OutOfBounds):
            region_density(field, PixelRect(5, 5, 0, 3))
