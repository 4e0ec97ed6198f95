"""Convert signature field boxes between editor space and PDF point space.

Field boxes are authored as percentages of the page with the origin at the
top-left. PDF user space is in points with the origin at the bottom-left,
so the vertical axis is flipped and the box's own height is subtracted.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class PdfRect:
    """A box in PDF points; (x, y) is the lower-left corner."""
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class FieldBox:
    """A box in percent of the page; (x, y) is the upper-left corner."""
    x: float
    y: float
    width: float
    height: float


def field_to_pdf_rect(field, page_width: float, page_height: float) -> PdfRect:
    """Map any object with x/y/width/height percentages to a PdfRect."""
    width = field.width / 100 * page_width
    height = field.height / 100 * page_height
    return PdfRect(
        x=field.x / 100 * page_width,
        y=page_height - (field.y / 100 * page_height) - height,
        width=width,
        height=height,
    )


def pdf_rect_to_field_box(rect: PdfRect, page_width: float, page_height: float) -> FieldBox:
    """Inverse of field_to_pdf_rect."""
    return FieldBox(
        x=rect.x / page_width * 100,
        y=(page_height - rect.y - rect.height) / page_height * 100,
        width=rect.width / page_width * 100,
        height=rect.height / page_height * 100,
    )
