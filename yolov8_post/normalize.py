from typing import Tuple

import numpy as np

from .errors import PreconditionError


def scale_frame(image: np.ndarray, side: int = 640) -> np.ndarray:
    """
    Resize a camera frame (H, W, C) to a `side x side` square with bilinear filtering.

    Frames already at the target size are returned as-is.
    """
    if image is None or not hasattr(image, "shape"):
        raise TypeError("image must be a NumPy array.")
    if image.ndim != 3:
        raise PreconditionError(f"Expected image shape (H, W, C), got {image.shape}")

    h, w = image.shape[:2]
    if (h, w) == (side, side):
        return image

    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for scale_frame(). Install with `pip install opencv-python`.") from e

    return cv2.resize(image, (side, side), interpolation=cv2.INTER_LINEAR)


def pack_rgb(image_rgb: np.ndarray) -> np.ndarray:
    """
    Pack an (H, W, 3) uint8 RGB image into one 32-bit ARGB integer per pixel.

    Layout: alpha 24-31 (always 0xFF), red 16-23, green 8-15, blue 0-7.
    """
    if image_rgb is None or not hasattr(image_rgb, "shape"):
        raise TypeError("image_rgb must be a NumPy array (RGB).")
    if image_rgb.ndim != 3 or image_rgb.shape[2] != 3:
        raise PreconditionError(f"Expected image shape (H, W, 3), got {image_rgb.shape}")

    rgb = image_rgb.astype(np.uint32)
    return (
        np.uint32(0xFF000000)
        | (rgb[:, :, 0] << np.uint32(16))
        | (rgb[:, :, 1] << np.uint32(8))
        | rgb[:, :, 2]
    )


def normalize(frame: np.ndarray, side: int = 640, *, full_coverage: bool = True) -> np.ndarray:
    """
    Convert a packed-pixel frame into a channel-planar, unit-scaled input tensor.

    Args:
        frame: `side x side` packed RGB pixels, shaped (side, side) or (side * side,)
        side: square side length of the model input
        full_coverage: when False, the last row and last column of every channel
            plane are left at 0.0 (legacy iteration bound `0 .. side - 2`)

    Returns:
        float32 array shaped (1, 3, side, side); flattened, plane `c` starts at
        offset `c * side * side` and pixel `(row, col)` sits at `side * row + col`.
    """
    pixels = np.asarray(frame)
    if pixels.size != side * side:
        raise PreconditionError(
            f"Frame must hold exactly {side}x{side} = {side * side} pixels, got shape {pixels.shape}."
        )
    if not np.issubdtype(pixels.dtype, np.integer):
        raise PreconditionError(f"Frame pixels must be packed integers, got dtype {pixels.dtype}.")

    # int64 keeps sign-extended ARGB values from int32 sources well-defined under masking.
    packed = pixels.reshape(side, side).astype(np.int64)
    planes = np.stack(
        [(packed >> 16) & 0xFF, (packed >> 8) & 0xFF, packed & 0xFF],
        axis=0,
    ).astype(np.float32) / 255.0

    if full_coverage:
        tensor = planes
    else:
        tensor = np.zeros((3, side, side), dtype=np.float32)
        tensor[:, : side - 1, : side - 1] = planes[:, : side - 1, : side - 1]

    return tensor[None, ...]


def input_shape(side: int = 640) -> Tuple[int, int, int, int]:
    """Shape the inference engine receives: (batch, channels, side, side)."""
    return 1, 3, side, side
