"""Burn a signer's fields onto a lease PDF and append the audit page.

The overlay is a pure function of its inputs: the same PDF bytes, fields,
images and signing timestamp always produce the same output bytes, which is
what makes the document hash reproducible.
"""

import base64
import binascii
import io
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from PIL import Image, UnidentifiedImageError
from pypdf import PdfReader, PdfWriter
from pypdf.errors import PdfReadError
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen import canvas

from leasedesk.core.exceptions import InvalidSignatureImage, PdfRenderFailure
from leasedesk.models.signing import SigningRole
from leasedesk.schemas.signing import (
    FIELD_VARIANTS,
    AuditMetadata,
    DateField,
    InitialField,
    NameField,
    SignatureField,
    SigningData,
    TextField,
)
from leasedesk.services.pdf_coordinates import PdfRect, field_to_pdf_rect

logger = logging.getLogger(__name__)

PNG_DATA_URL_PREFIX = "data:image/png;base64,"
DEFAULT_MAX_IMAGE_BYTES = 5 * 1024 * 1024

FONT_NAME = "Helvetica"
MAX_FONT_SIZE = 12
INITIALS_FALLBACK_SCALE = 0.8

LEGAL_STATEMENT = (
    "By signing electronically, the signer agreed that this electronic signature "
    "is the legal equivalent of a handwritten signature and is legally binding "
    "under the ESIGN Act and UETA."
)


def decode_png_data_url(data_url: str, max_bytes: int = DEFAULT_MAX_IMAGE_BYTES) -> Image.Image:
    """Decode a `data:image/png;base64,` URL into a loaded Pillow image."""
    if not data_url or not data_url.startswith(PNG_DATA_URL_PREFIX):
        raise InvalidSignatureImage()

    try:
        raw = base64.b64decode(data_url[len(PNG_DATA_URL_PREFIX):], validate=True)
    except (binascii.Error, ValueError):
        raise InvalidSignatureImage()

    if not raw or len(raw) > max_bytes:
        raise InvalidSignatureImage("Signature image is too large. Please try signing again.")

    try:
        image = Image.open(io.BytesIO(raw))
        image.load()
    except (UnidentifiedImageError, OSError):
        raise InvalidSignatureImage()

    if image.format != "PNG":
        raise InvalidSignatureImage()
    return image.convert("RGBA")


@dataclass
class _RenderContext:
    signer_name: str
    signed_at: datetime
    signature: Image.Image
    initials: Optional[Image.Image]


def _font_size(rect: PdfRect) -> float:
    return min(MAX_FONT_SIZE, rect.height * 0.7)


def _draw_image(c: canvas.Canvas, image: Image.Image, rect: PdfRect, scale: float = 1.0) -> None:
    img_w, img_h = image.size
    ratio = min(rect.width / img_w, rect.height / img_h) * scale
    draw_w = img_w * ratio
    draw_h = img_h * ratio
    c.drawImage(
        ImageReader(image),
        rect.x,
        rect.y + (rect.height - draw_h) / 2,
        width=draw_w,
        height=draw_h,
        mask="auto",
    )


def _draw_text(c: canvas.Canvas, text: str, rect: PdfRect) -> None:
    size = _font_size(rect)
    c.setFont(FONT_NAME, size)
    # Baseline placed so the cap height sits in the middle of the box
    c.drawString(rect.x + 2, rect.y + (rect.height - size * 0.7) / 2, text)


def _render_signature(c, field: SignatureField, rect: PdfRect, ctx: _RenderContext) -> None:
    _draw_image(c, ctx.signature, rect)


def _render_initial(c, field: InitialField, rect: PdfRect, ctx: _RenderContext) -> None:
    if ctx.initials is not None:
        _draw_image(c, ctx.initials, rect)
    else:
        _draw_image(c, ctx.signature, rect, scale=INITIALS_FALLBACK_SCALE)


def _render_date(c, field: DateField, rect: PdfRect, ctx: _RenderContext) -> None:
    _draw_text(c, ctx.signed_at.strftime("%m/%d/%Y"), rect)


def _render_name(c, field: NameField, rect: PdfRect, ctx: _RenderContext) -> None:
    _draw_text(c, ctx.signer_name, rect)


def _render_text(c, field: TextField, rect: PdfRect, ctx: _RenderContext) -> None:
    if field.value:
        _draw_text(c, field.value, rect)


FIELD_RENDERERS: dict[type, Callable] = {
    SignatureField: _render_signature,
    InitialField: _render_initial,
    DateField: _render_date,
    NameField: _render_name,
    TextField: _render_text,
}

if set(FIELD_RENDERERS) != set(FIELD_VARIANTS):
    raise RuntimeError("Every signature field variant needs a renderer")


def _overlay_page(width: float, height: float, fields: list, ctx: _RenderContext) -> bytes:
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=(width, height), invariant=1)
    for field in fields:
        rect = field_to_pdf_rect(field, width, height)
        FIELD_RENDERERS[type(field)](c, field, rect, ctx)
    c.showPage()
    c.save()
    return buffer.getvalue()


def _audit_page(width: float, height: float, signing_data: SigningData, role: SigningRole,
                audit: AuditMetadata, signed_at: datetime) -> bytes:
    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=(width, height), invariant=1)
    margin = 72
    text_width = width - 2 * margin
    y = height - margin

    c.setFont("Helvetica-Bold", 16)
    c.drawString(margin, y, "Electronic Signature Audit Record")
    y -= 36

    rows = [
        ("Signer Name", signing_data.signer_name),
        ("Signer Email", signing_data.signer_email),
        ("Role", role.value.capitalize()),
        ("Signed At", signed_at.isoformat()),
        ("IP Address", audit.ip),
        ("User Agent", audit.user_agent),
    ]
    for label, value in rows:
        c.setFont("Helvetica-Bold", 10)
        c.drawString(margin, y, f"{label}:")
        c.setFont(FONT_NAME, 10)
        for line in simpleSplit(str(value), FONT_NAME, 10, text_width - 90) or [""]:
            c.drawString(margin + 90, y, line)
            y -= 14
        y -= 4

    y -= 16
    c.setFont(FONT_NAME, 9)
    for line in simpleSplit(LEGAL_STATEMENT, FONT_NAME, 9, text_width):
        c.drawString(margin, y, line)
        y -= 12

    c.showPage()
    c.save()
    return buffer.getvalue()


def apply_signatures_to_pdf(
    pdf_bytes: bytes,
    fields: list,
    signing_data: SigningData,
    role: SigningRole,
    audit: AuditMetadata,
    signed_at: datetime,
    max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
) -> bytes:
    """Return new PDF bytes with `role`'s fields drawn in and an audit page appended."""
    signature = decode_png_data_url(signing_data.signature_data_url, max_image_bytes)
    initials = (
        decode_png_data_url(signing_data.initials_data_url, max_image_bytes)
        if signing_data.initials_data_url
        else None
    )
    ctx = _RenderContext(
        signer_name=signing_data.signer_name,
        signed_at=signed_at,
        signature=signature,
        initials=initials,
    )

    try:
        reader = PdfReader(io.BytesIO(pdf_bytes))
        writer = PdfWriter()
        for page in reader.pages:
            writer.add_page(page)

        page_count = len(writer.pages)
        if page_count == 0:
            raise PdfRenderFailure("The lease document has no pages.")

        by_page: dict[int, list] = {}
        for field in fields:
            if field.role != role:
                continue
            if field.page > page_count:
                logger.warning("Skipping field %s on page %d; document has %d pages", field.id, field.page, page_count)
                continue
            by_page.setdefault(field.page, []).append(field)

        for page_number in sorted(by_page):
            page = writer.pages[page_number - 1]
            if page.rotation:
                # field boxes are relative to the page as displayed
                page.transfer_rotation_to_content()
            box = page.mediabox
            overlay_pdf = _overlay_page(float(box.width), float(box.height), by_page[page_number], ctx)
            overlay = PdfReader(io.BytesIO(overlay_pdf))
            if box.left or box.bottom:
                page.merge_translated_page(overlay.pages[0], float(box.left), float(box.bottom))
            else:
                page.merge_page(overlay.pages[0])

        last = writer.pages[-1]
        audit_pdf = PdfReader(io.BytesIO(_audit_page(
            float(last.mediabox.width),
            float(last.mediabox.height),
            signing_data,
            role,
            audit,
            signed_at,
        )))
        writer.add_page(audit_pdf.pages[0])

        output = io.BytesIO()
        writer.write(output)
        return output.getvalue()
    except PdfRenderFailure:
        raise
    except (PdfReadError, ValueError, KeyError, OSError) as e:
        logger.error("Failed to render signatures for role %s: %s", role.value, e)
        raise PdfRenderFailure() from e
