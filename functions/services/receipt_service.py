from fpdf import FPDF

from utils.date_utils import parse_datetime


def _format_date(value) -> str:
    parsed = parse_datetime(value)
    return parsed.strftime('%d %b %Y') if parsed else 'N/A'


def generate_receipt_pdf(payment: dict, tenant: dict = None, prop: dict = None) -> bytes:
    """
    Generates a receipt PDF for a payment.
    Tenant and property records are optional; the payment's cached names are used otherwise.
    """
    tenant_name = payment.get('tenantName') or 'N/A'
    if tenant:
        tenant_name = f"{tenant.get('firstName', '')} {tenant.get('lastName', '')}".strip() or tenant_name
    property_name = (prop or {}).get('name') or payment.get('propertyName') or 'N/A'

    pdf = FPDF()
    pdf.add_page()

    # Title
    pdf.set_font("helvetica", "B", 16)
    pdf.cell(0, 10, "Payment Receipt", ln=True, align="C")
    pdf.set_font("helvetica", size=10)
    pdf.cell(0, 8, f"Reference: {payment.get('reference') or payment.get('id')}", ln=True, align="C")
    pdf.ln(10)

    # Tenant and Property Info
    pdf.set_font("helvetica", "B", 12)
    pdf.cell(0, 10, f"Tenant: {tenant_name}", ln=True)
    pdf.cell(0, 10, f"Property: {property_name}", ln=True)
    if tenant and tenant.get('unit'):
        pdf.cell(0, 10, f"Unit: {tenant['unit']}", ln=True)
    pdf.ln(5)

    # Dates
    pdf.set_font("helvetica", size=12)
    pdf.cell(0, 10, f"Payment Date: {_format_date(payment.get('date'))}", ln=True)
    pdf.cell(0, 10, f"Completed: {_format_date(payment.get('completedAt'))}", ln=True)
    pdf.cell(0, 10, f"Method: {payment.get('method') or 'N/A'}", ln=True)
    pdf.ln(10)

    # Items Table
    pdf.set_font("helvetica", "B", 12)
    pdf.cell(100, 10, "Description", border=1)
    pdf.cell(40, 10, "Amount", border=1, ln=True, align="R")

    amount = float(payment.get('amount') or 0)
    pdf.set_font("helvetica", size=12)
    pdf.cell(100, 10, payment.get('description') or "Rent payment", border=1)
    pdf.cell(40, 10, f"{amount:,.2f}", border=1, ln=True, align="R")

    # Total
    pdf.set_font("helvetica", "B", 12)
    pdf.cell(100, 10, "Total Paid", border=1)
    pdf.cell(40, 10, f"{amount:,.2f}", border=1, ln=True, align="R")
    pdf.ln(10)

    # Thank you message
    pdf.set_font("helvetica", "I", 12)
    pdf.cell(0, 10, "Thank you for your payment!", ln=True, align="C")

    return bytes(pdf.output())
