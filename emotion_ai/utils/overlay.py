"""Draw facial keypoints over the captured image."""

import io
from typing import List, Optional, Sequence

from PIL import Image, ImageDraw

KEYPOINT_COLOR = "#4ade80"
POINT_RADIUS = 3

# Index paths through the 15 keypoints
FACE_OUTLINE = [0, 1, 12, 13, 14, 9, 0]
EYE_LINES = [[0, 5], [1, 6]]
MOUTH = [3, 7, 4, 8, 3]


def _polyline(draw: ImageDraw.ImageDraw, points: Sequence[Sequence[float]], indices: List[int], width: int):
    coords = [tuple(points[i]) for i in indices if i < len(points)]
    if len(coords) >= 2:
        draw.line(coords, fill=KEYPOINT_COLOR, width=width)


def draw_keypoints(
    image: Image.Image,
    points: Optional[Sequence[Sequence[float]]],
    size: int = 96,
    scale: int = 1,
) -> Image.Image:
    """
    Render the image at size x size (times scale) with keypoints on top.

    Args:
        image: Captured image
        points: [x, y] pairs in the size x size frame, or None
        size: Frame side length the keypoints refer to
        scale: Integer upscaling for display

    Returns:
        New RGB image
    """
    side = size * scale
    canvas = image.convert("RGB").resize((side, side))
    if not points:
        return canvas

    scaled = [[x * scale, y * scale] for x, y in points]
    draw = ImageDraw.Draw(canvas)
    width = 2 * scale

    if len(scaled) >= 15:
        _polyline(draw, scaled, FACE_OUTLINE, width)
        for line in EYE_LINES:
            _polyline(draw, scaled, line, width)
        _polyline(draw, scaled, MOUTH, width)

    r = POINT_RADIUS * scale
    for x, y in scaled:
        draw.ellipse([x - r, y - r, x + r, y + r], fill=KEYPOINT_COLOR)
    return canvas


def to_png_bytes(image: Image.Image) -> bytes:
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()
