import numpy as np

from omr.errors import OutOfBounds
from omr.layout import PixelRect


def region_density(field: np.ndarray, rect: PixelRect) -> float:
    """Fraction of dark pixels in the part of ``rect`` that lies inside ``field``."""
    field_h, field_w = field.shape[:2]
    x0 = max(0, rect.x)
    y0 = max(0, rect.y)
    x1 = min(field_w, rect.x + rect.width)
    y1 = min(field_h, rect.y + rect.height)
    if x1 <= x0 or y1 <= y0:
        raise OutOfBounds(
            f"Rectangle ({rect.x}, {rect.y}, {rect.width}x{rect.height}) is outside the {field_w}x{field_h} field"
        )

    region = field[y0:y1, x0:x1]
    return float(np.count_nonzero(region)) / region.size
