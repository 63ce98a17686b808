import cv2
import numpy as np
import logging
from dataclasses import dataclass

from omr.errors import InvalidImage

logger = logging.getLogger(__name__)

# Binarization Configuration
THRESHOLD_VALUE = 120  # luma below this is a mark
LUMA_WEIGHTS = (0.299, 0.587, 0.114)


@dataclass(frozen=True, eq=False)
class ScannedImage:
    """An RGB or RGBA raster handed to the grader.

    ``pixels`` is an ``H x W x C`` uint8 array with C in {3, 4}, channels in
    RGB(A) order. The engine only reads it.
    """
    pixels: np.ndarray

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @classmethod
    def from_array(cls, pixels: np.ndarray) -> "ScannedImage":
        if pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
            raise InvalidImage(f"Expected 3 or 4 channels, got shape {pixels.shape}")
        if pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise InvalidImage(f"Image has zero area ({pixels.shape[1]}x{pixels.shape[0]})")
        view = pixels.view()
        view.flags.writeable = False
        return cls(pixels=view)

    @classmethod
    def from_bytes(cls, image_data: bytes) -> "ScannedImage":
        """Decode an uploaded JPEG/PNG into RGB pixels."""
        nparr = np.frombuffer(image_data, np.uint8)
        img = cv2.imdecode(nparr, cv2.IMREAD_COLOR) if nparr.size else None
        if img is None:
            raise InvalidImage("Could not decode image")
        logger.info(f"Image loaded - Dimensions: {img.shape[1]}x{img.shape[0]}")
        return cls.from_array(cv2.cvtColor(img, cv2.COLOR_BGR2RGB))


def binarize(image: ScannedImage) -> np.ndarray:
    """Return an ``H x W`` boolean field where True marks a dark pixel."""
    pixels = image.pixels
    if pixels.shape[0] == 0 or pixels.shape[1] == 0:
        raise InvalidImage("Image has zero area")

    rgb = pixels[:, :, :3].astype(np.float64)
    luma = (
        LUMA_WEIGHTS[0] * rgb[:, :, 0]
        + LUMA_WEIGHTS[1] * rgb[:, :, 1]
        + LUMA_WEIGHTS[2] * rgb[:, :, 2]
    )
    return luma < THRESHOLD_VALUE
