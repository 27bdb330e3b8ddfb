# Overview: PDF payment receipts rendered with reportlab.

from __future__ import annotations

from io import BytesIO

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from ..models import Payment
from ..pricing import bps_to_percent, format_inr
from . import settings_service
from gymdesk.time_utils import format_date_indian


LEFT = 50
RIGHT = 545
CURRENCY_LABEL = "Rs. "  # Base-14 PDF fonts have no rupee glyph


def invoice_filename(payment: Payment) -> str:
    return f"Invoice_{payment.invoice_number}.pdf"


def invoice_data(payment: Payment) -> dict:
    """Everything printed on the receipt, gathered from payment, member and settings."""
    identity = settings_service.gym_identity()
    membership = payment.membership
    member = payment.member
    user = member.user if member else None
    issued = payment.paid_at or payment.created_at

    base_cents = payment.amount_cents - (payment.gst_amount_cents or 0)
    # Rate charged at payment time; the plan may have been repriced since
    gst_bps = payment.gst_bps or 0

    return {
        "invoice_number": payment.invoice_number,
        "invoice_date": format_date_indian(issued) if issued else "",
        "gym_name": identity["gym_name"],
        "gym_address": identity["address"],
        "gym_phone": identity["phone"],
        "gym_gstin": identity["gstin"],
        "member_name": user.full_name if user else "",
        "member_phone": user.mobile if user else "",
        "member_code": member.member_code if member else "",
        "plan_name": membership.plan_name if membership else "",
        "plan_duration": membership.duration_days if membership else None,
        "base_amount": format_inr(base_cents, CURRENCY_LABEL),
        "gst_percent": bps_to_percent(gst_bps),
        "gst_amount": format_inr(payment.gst_amount_cents or 0, CURRENCY_LABEL),
        "total_amount": format_inr(payment.amount_cents, CURRENCY_LABEL),
        "payment_method": payment.payment_method,
        "payment_date": format_date_indian(issued) if issued else "",
        "payment_status": "PAID" if payment.status == "COMPLETED" else payment.status,
    }


def render_invoice_pdf(payment: Payment) -> bytes:
    data = invoice_data(payment)

    buffer = BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    width, height = A4
    center = width / 2
    y = height - 60

    # Header
    c.setFont("Helvetica-Bold", 20)
    c.drawCentredString(center, y, data["gym_name"])
    y -= 18
    c.setFont("Helvetica", 10)
    c.drawCentredString(center, y, data["gym_address"] or "")
    if data["gym_phone"]:
        y -= 14
        c.drawCentredString(center, y, f"Phone: {data['gym_phone']}")
    if data["gym_gstin"]:
        y -= 14
        c.drawCentredString(center, y, f"GSTIN: {data['gym_gstin']}")

    y -= 40
    c.setFont("Helvetica-Bold", 16)
    c.drawCentredString(center, y, "PAYMENT RECEIPT")

    y -= 30
    c.setFont("Helvetica", 10)
    c.drawString(LEFT, y, f"Invoice Number: {data['invoice_number']}")
    y -= 14
    c.drawString(LEFT, y, f"Invoice Date: {data['invoice_date']}")

    y -= 26
    c.setFont("Helvetica-Bold", 10)
    c.drawString(LEFT, y, "Bill To:")
    c.setFont("Helvetica", 10)
    for line in (
        f"Name: {data['member_name']}",
        f"Member ID: {data['member_code']}",
        f"Phone: {data['member_phone']}",
    ):
        y -= 14
        c.drawString(LEFT, y, line)

    # Line item table
    y -= 20
    c.line(LEFT, y, RIGHT, y)
    y -= 16
    c.setFont("Helvetica-Bold", 10)
    c.drawString(LEFT, y, "Description")
    c.drawString(250, y, "Duration")
    c.drawRightString(RIGHT, y, "Amount")
    y -= 8
    c.line(LEFT, y, RIGHT, y)

    y -= 18
    c.setFont("Helvetica", 10)
    c.drawString(LEFT, y, f"{data['plan_name']} - Gym Membership")
    if data["plan_duration"]:
        c.drawString(250, y, f"{data['plan_duration']} Days")
    c.drawRightString(RIGHT, y, data["base_amount"])

    if data["gst_percent"]:
        y -= 16
        c.drawString(LEFT, y, f"GST @ {data['gst_percent']:g}%")
        c.drawRightString(RIGHT, y, data["gst_amount"])

    y -= 14
    c.line(LEFT, y, RIGHT, y)
    y -= 20
    c.setFont("Helvetica-Bold", 11)
    c.drawString(350, y, "Total Amount:")
    c.drawRightString(RIGHT, y, data["total_amount"])

    y -= 36
    c.setFont("Helvetica", 10)
    for line in (
        f"Payment Method: {data['payment_method']}",
        f"Payment Date: {data['payment_date']}",
        f"Payment Status: {data['payment_status']}",
    ):
        c.drawString(LEFT, y, line)
        y -= 14

    # Footer
    y -= 30
    c.setFont("Helvetica", 8)
    c.drawCentredString(center, y, "This is a computer-generated invoice and does not require a signature.")
    y -= 12
    c.drawCentredString(center, y, f"Thank you for choosing {data['gym_name']}!")

    c.showPage()
    c.save()
    return buffer.getvalue()
