"""
Form Summary PDF Service.

Renders a priced summary of an insurance request using reportlab.
"""

import html
import io
import re
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

from insurance_portal.db.models import Form, InsuranceItem

CURRENCY_SYMBOL = "€"
PENDING_LABEL = "Pending"
MONTHS_PER_YEAR = 12
CENTS = Decimal("0.01")
FOOTER_TEXT = "This document is a summary of the requested insurance policies."


@dataclass
class PremiumTotals:
    monthly: Decimal
    annual: Decimal


def parse_price(price: Optional[str]) -> Optional[Decimal]:
    """Return the price as a Decimal, or None when missing or not numeric."""
    if price is None or not str(price).strip():
        return None
    try:
        value = Decimal(str(price).strip())
    except InvalidOperation:
        return None
    return value if value.is_finite() else None


def compute_totals(items: Iterable[InsuranceItem]) -> PremiumTotals:
    """
    Sum item prices into monthly and annual premiums.

    Items without a numeric price count as zero.
    """
    monthly = sum(
        (parse_price(item.price) or Decimal("0") for item in items),
        Decimal("0"),
    )
    return PremiumTotals(
        monthly=monthly.quantize(CENTS, rounding=ROUND_HALF_UP),
        annual=(monthly * MONTHS_PER_YEAR).quantize(CENTS, rounding=ROUND_HALF_UP),
    )


def format_price(price: Optional[str]) -> str:
    if parse_price(price) is None:
        return PENDING_LABEL
    return f"{CURRENCY_SYMBOL}{price.strip()}"


def summary_filename(client_name: str) -> str:
    """Download name: summary-<client-name-with-dashes>.pdf, header-safe."""
    slug = re.sub(r"\s+", "-", client_name.strip())
    slug = re.sub(r"[^\w.\-]", "", slug) or "form"
    return f"summary-{slug}.pdf"


def create_form_summary_pdf(
    form: Form,
    org_name: str,
    generated_on: Optional[date] = None,
) -> bytes:
    """
    Generate the summary PDF for a form.

    Args:
        form: Form with items loaded
        org_name: Organization name for the header
        generated_on: Date printed in the header (defaults to today)

    Returns:
        PDF bytes
    """
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=40,
        leftMargin=40,
        topMargin=40,
        bottomMargin=40,
        title=f"Summary - {form.client_name}",
    )

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "SummaryTitle",
        parent=styles["Heading1"],
        fontSize=20,
        spaceAfter=12,
        textColor=colors.HexColor("#1e293b"),
    )
    meta_style = ParagraphStyle(
        "SummaryMeta",
        parent=styles["Normal"],
        fontSize=10,
        leading=14,
    )
    total_style = ParagraphStyle(
        "SummaryTotal",
        parent=styles["Normal"],
        fontName="Helvetica-Bold",
        fontSize=12,
        leading=18,
    )
    footer_style = ParagraphStyle(
        "SummaryFooter",
        parent=styles["Normal"],
        fontSize=8,
        textColor=colors.HexColor("#64748b"),
    )

    elements = []

    # Header
    elements.append(Paragraph(html.escape(org_name), title_style))
    generated_on = generated_on or date.today()
    elements.append(Paragraph(f"Date: {generated_on.strftime('%b %d, %Y')}", meta_style))
    elements.append(Paragraph(f"Client: {html.escape(form.client_name)}", meta_style))
    if form.email:
        elements.append(Paragraph(f"Email: {html.escape(form.email)}", meta_style))
    elements.append(Paragraph(f"Status: {html.escape(form.status)}", meta_style))
    elements.append(Spacer(1, 15))

    # Items table
    table_data = [["Insurance Type", "Package", "Request Type", "Price"]]
    for item in form.items:
        table_data.append([
            item.insurance_type,
            item.package,
            item.request_type,
            format_price(item.price),
        ])

    items_table = Table(
        table_data,
        colWidths=[2.6 * inch, 1.2 * inch, 1.4 * inch, 1.2 * inch],
        repeatRows=1,
    )
    items_table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#424242")),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, 0), 10),
                ("FONTSIZE", (0, 1), (-1, -1), 9),
                ("ALIGN", (3, 0), (3, -1), "RIGHT"),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#9e9e9e")),
                ("TOPPADDING", (0, 0), (-1, -1), 6),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
            ]
        )
    )
    elements.append(items_table)
    elements.append(Spacer(1, 15))

    # Totals
    totals = compute_totals(form.items)
    elements.append(
        Paragraph(f"Total Monthly Premium: {CURRENCY_SYMBOL}{totals.monthly}", total_style)
    )
    elements.append(
        Paragraph(f"Total Annual Premium: {CURRENCY_SYMBOL}{totals.annual}", total_style)
    )
    elements.append(Spacer(1, 30))
    elements.append(Paragraph(FOOTER_TEXT, footer_style))

    doc.build(elements)
    return buffer.getvalue()
