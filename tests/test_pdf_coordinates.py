"""Tests for editor-percent to PDF-point coordinate conversion."""

import pytest

from leasedesk.models.signing import SigningRole
from leasedesk.schemas.signing import SignatureField
from leasedesk.services.pdf_coordinates import PdfRect, field_to_pdf_rect, pdf_rect_to_field_box

LETTER = (612.0, 792.0)
A4 = (595.28, 841.89)


def field(**kwargs) -> SignatureField:
    data = dict(id="f1", role=SigningRole.TENANT, page=1, x=10, y=20, width=30, height=5)
    data.update(kwargs)
    return SignatureField(**data)


def test_field_maps_to_bottom_left_origin():
    rect = field_to_pdf_rect(field(), *LETTER)

    assert rect.x == pytest.approx(61.2)
    assert rect.width == pytest.approx(183.6)
    assert rect.height == pytest.approx(39.6)
    # 792 - 158.4 - 39.6
    assert rect.y == pytest.approx(594.0)


def test_top_left_corner_field_touches_page_top():
    rect = field_to_pdf_rect(field(x=0, y=0, width=10, height=10), *LETTER)
    assert rect.x == 0
    assert rect.y + rect.height == pytest.approx(LETTER[1])


def test_bottom_field_touches_page_bottom():
    rect = field_to_pdf_rect(field(y=95, height=5), *LETTER)
    assert rect.y == pytest.approx(0.0, abs=1e-9)


@pytest.mark.parametrize("page_size", [LETTER, A4, (1224.0, 792.0)])
def test_round_trip_recovers_percentages(page_size):
    original = field()
    box = pdf_rect_to_field_box(field_to_pdf_rect(original, *page_size), *page_size)

    assert box.x == pytest.approx(original.x)
    assert box.y == pytest.approx(original.y)
    assert box.width == pytest.approx(original.width)
    assert box.height == pytest.approx(original.height)


def test_inverse_of_known_rect():
    box = pdf_rect_to_field_box(PdfRect(x=306, y=396, width=61.2, height=79.2), *LETTER)
    assert box.x == pytest.approx(50)
    assert box.y == pytest.approx(40)
    assert box.width == pytest.approx(10)
    assert box.height == pytest.approx(10)
