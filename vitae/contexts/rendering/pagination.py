"""
Vertical slicing of a full-page screenshot across fixed-size PDF pages.

The screenshot is scaled to the page width. The first page shows the top of the
image; each further page shifts the image up by one page height, and pages are
added while any scaled height remains. Slices are mechanical: content is cut
wherever the page boundary falls.
"""

from dataclasses import dataclass
from typing import List

# A4 portrait in millimetres
A4_WIDTH_MM = 210.0
A4_HEIGHT_MM = 297.0


@dataclass(frozen=True)
class PageSlice:
    """
    One PDF page worth of the screenshot.

    Attributes:
        index: Page number (0-based)
        offset_mm: Vertical image offset on the page (0, -297, -594, ...)
        top_px: First source pixel row shown on this page
        bottom_px: Source pixel row where this page stops (exclusive)
    """

    index: int
    offset_mm: float
    top_px: int
    bottom_px: int

    @property
    def height_px(self) -> int:
        return self.bottom_px - self.top_px


def scaled_height(image_width: int, image_height: int, page_width: float = A4_WIDTH_MM) -> float:
    """Image height in page units once its width is scaled to page_width."""
    if image_width <= 0:
        raise ValueError(f"Image width must be positive, got {image_width}")
    return image_height * page_width / image_width


def page_slices(
    image_width: int,
    image_height: int,
    page_width: float = A4_WIDTH_MM,
    page_height: float = A4_HEIGHT_MM,
) -> List[PageSlice]:
    """
    Compute the page slices for an image.

    Args:
        image_width: Screenshot width in pixels
        image_height: Screenshot height in pixels
        page_width: Page width (mm)
        page_height: Page height (mm)

    Returns:
        At least one PageSlice; more when the scaled image is taller than a page

    Example:
        >>> [s.top_px for s in page_slices(1190, 3600)]
        [0, 1683, 3366]
    """
    if image_height <= 0:
        raise ValueError(f"Image height must be positive, got {image_height}")

    total = scaled_height(image_width, image_height, page_width)
    px_per_unit = image_width / page_width

    slices = []
    position = 0.0
    height_left = total
    index = 0
    while True:
        top_px = min(image_height, round(-position * px_per_unit))
        bottom_px = min(image_height, round((-position + page_height) * px_per_unit))
        slices.append(PageSlice(index=index, offset_mm=position, top_px=top_px, bottom_px=bottom_px))

        height_left -= page_height
        if height_left <= 0:
            break
        position -= page_height
        index += 1

    return slices
