"""Captured image decoding and model preprocessing."""

import base64
import binascii
import io
from typing import Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from ..errors import ImageDecodeError


def decode_image(data: Union[str, bytes]) -> Image.Image:
    """
    Decode a captured image.

    Accepts a data URL ("data:image/png;base64,..."), plain base64 text,
    or raw encoded bytes.

    Args:
        data: Encoded image

    Returns:
        RGB PIL image
    """
    if not data:
        raise ImageDecodeError("No image data")

    if isinstance(data, str):
        text = data.strip()
        if text.startswith("data:"):
            if "," not in text:
                raise ImageDecodeError("Malformed data URL")
            text = text.split(",", 1)[1]
        try:
            raw = base64.b64decode(text, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ImageDecodeError(f"Invalid base64 image data: {e}") from e
    else:
        raw = data

    try:
        image = Image.open(io.BytesIO(raw))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ImageDecodeError(f"Could not decode image: {e}") from e
    return image.convert("RGB")


def preprocess_image(image: Image.Image, size: int = 96, channels: int = 3) -> np.ndarray:
    """
    Prepare an image for the facial models.

    Nearest-neighbour resize to size x size, scale to [0, 1], add a batch
    dimension.

    Args:
        image: Decoded image
        size: Target side length
        channels: 3 for RGB input, 1 for grayscale input

    Returns:
        float32 array of shape (1, size, size, channels)
    """
    mode = "L" if channels == 1 else "RGB"
    resized = image.convert(mode).resize((size, size), Image.NEAREST)
    arr = np.asarray(resized, dtype=np.float32) / 255.0
    if channels == 1:
        arr = arr[..., np.newaxis]
    return np.expand_dims(arr, axis=0)


def input_channels(model, default: int = 3) -> int:
    """Read the channel count a Keras model expects, if it declares one."""
    shape = getattr(model, "input_shape", None)
    if isinstance(shape, list):
        shape = shape[0] if shape else None
    if shape and len(shape) == 4 and shape[-1] in (1, 3):
        return int(shape[-1])
    return default
