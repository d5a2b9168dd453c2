"""Tests for the form summary PDF export."""
from datetime import date
from decimal import Decimal

import pytest
from httpx import AsyncClient

from insurance_portal.db.models import InsuranceItem
from insurance_portal.services import pdf_service


def _items(*prices):
    return [InsuranceItem(insurance_type="Household Insurance", package="Basic",
                          request_type="New Policy", price=p) for p in prices]


def test_totals_skip_missing_prices():
    totals = pdf_service.compute_totals(_items("150", None))
    assert totals.monthly == Decimal("150.00")
    assert totals.annual == Decimal("1800.00")
    assert str(totals.monthly) == "150.00"
    assert str(totals.annual) == "1800.00"


def test_totals_treat_non_numeric_as_zero():
    totals = pdf_service.compute_totals(_items("19.99", "tbd", "", "0.01"))
    assert totals.monthly == Decimal("20.00")
    assert totals.annual == Decimal("240.00")


def test_totals_of_no_items_are_zero():
    totals = pdf_service.compute_totals([])
    assert str(totals.monthly) == "0.00"
    assert str(totals.annual) == "0.00"


def test_format_price():
    assert pdf_service.format_price("150") == "€150"
    assert pdf_service.format_price(None) == "Pending"
    assert pdf_service.format_price("abc") == "Pending"


def test_summary_filename_dashes_spaces():
    assert pdf_service.summary_filename("John  Doe") == "summary-John-Doe.pdf"
    assert pdf_service.summary_filename('Evil"; x') == "summary-Evil-x.pdf"


def test_pdf_renders(db, client_user, make_form):
    form = make_form(client_user, client_name="John Doe", prices=("150", None))
    pdf = pdf_service.create_form_summary_pdf(form, "Test Organization", generated_on=date(2026, 1, 2))
    assert pdf.startswith(b"%PDF")


@pytest.mark.asyncio
async def test_export_returns_pdf_attachment(client: AsyncClient, client_auth, make_form):
    form = make_form(client_auth.user, client_name="John Doe", prices=("150", None))
    response = await client.get(f"/api/forms/{form.id}/pdf", headers=client_auth.headers)
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["content-disposition"] == "attachment; filename=summary-John-Doe.pdf"
    assert response.content.startswith(b"%PDF")


@pytest.mark.asyncio
async def test_admin_exports_client_form(client: AsyncClient, admin_auth, client_user, make_form):
    form = make_form(client_user)
    response = await client.get(f"/api/forms/{form.id}/pdf", headers=admin_auth.headers)
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_client_cannot_export_foreign_form(
    client: AsyncClient, client_auth, other_client_user, make_form
):
    form = make_form(other_client_user)
    response = await client.get(f"/api/forms/{form.id}/pdf", headers=client_auth.headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_other_tenant_cannot_export(
    client: AsyncClient, foreign_admin_auth, client_user, make_form
):
    form = make_form(client_user)
    response = await client.get(f"/api/forms/{form.id}/pdf", headers=foreign_admin_auth.headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_render_failure_is_500(client: AsyncClient, client_auth, make_form, monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("font missing")

    monkeypatch.setattr(pdf_service, "create_form_summary_pdf", broken)
    form = make_form(client_auth.user)
    response = await client.get(f"/api/forms/{form.id}/pdf", headers=client_auth.headers)
    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to generate PDF"
