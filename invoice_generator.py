from html import escape
from io import BytesIO
from urllib.parse import quote, urlencode

import pandas as pd
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from config import WATERMARK_TEXT
from errors import ShareUnavailableError
from tax_calc import compute_line, line_amount, money, to_number
from utils import format_inr, load_logo, rupees_in_words

SHARE_CHANNELS = ("whatsapp", "email")


def _fmt_qty(qty):
    qty = to_number(qty)
    return str(int(qty)) if qty.is_integer() else f"{qty:g}"


def _fmt_rate(rate):
    return f"{to_number(rate):g}%"


def _tax_rows(state, totals):
    """Label/value pairs for the totals block."""
    rows = [
        ("Subtotal", totals["subtotal"]),
        ("Discount", totals["discount"]),
        ("Shipping", totals["shipping"]),
    ]
    if state.invoice.inter_state:
        rows.append(("IGST", totals["igst"]))
    else:
        rows.append(("CGST", totals["cgst"]))
        rows.append(("SGST", totals["sgst"]))
    return rows


def _show_logo(state):
    return state.pro_unlocked and bool(state.profile.logo)


# ---------------------------------------------------
# HTML print view
# ---------------------------------------------------
def render_invoice_html(state, totals):
    """Print-formatted invoice as an HTML fragment."""
    p, c, inv = state.profile, state.client, state.invoice
    e = lambda v: escape(str(v or ""))

    logo_html = ""
    if _show_logo(state):
        logo_html = f'<img src="{e(p.logo)}" alt="logo" class="invoice-logo"/>'

    rows_html = "".join(
        f"<tr><td>{e(it.name)}</td><td>{e(it.hsn)}</td>"
        f'<td class="num">{_fmt_qty(it.qty)}</td>'
        f'<td class="num">{format_inr(it.price)}</td>'
        f'<td class="num">{_fmt_rate(it.gst)}</td>'
        f'<td class="num">{format_inr(line_amount(it))}</td></tr>'
        for it in inv.items
    )
    totals_html = "".join(
        f'<div class="total-row"><span>{label}</span><span>{format_inr(value)}</span></div>'
        for label, value in _tax_rows(state, totals)
    )
    due_html = f"<div>Due: {e(inv.due)}</div>" if inv.due else ""
    watermark_html = "" if state.pro_unlocked else f'<div class="watermark">{e(WATERMARK_TEXT)}</div>'

    return f"""
<div class="print-area">
  <div class="invoice-head">
    <div>
      <h2>{e(p.biz_name)}</h2>
      <div class="muted pre">{e(p.address)}</div>
      <div>GSTIN: {e(p.gstin) or "—"}</div>
      <div>State: {e(p.state)}</div>
    </div>
    {logo_html}
  </div>
  <div class="invoice-parties">
    <div>
      <b>Bill To:</b>
      <div>{e(c.name)}</div>
      <div class="pre">{e(c.address)}</div>
      <div>GSTIN: {e(c.gstin) or "—"}</div>
      <div>State: {e(c.state)}</div>
    </div>
    <div>
      <div>Invoice No: <b>{e(inv.number)}</b></div>
      <div>Date: {e(inv.date)}</div>
      {due_html}
      <div>Place of Supply: {e(inv.place_of_supply)}</div>
      <div>{"IGST" if inv.inter_state else "CGST + SGST"}</div>
    </div>
  </div>
  <table class="invoice-table">
    <thead><tr><th>Item</th><th>HSN/SAC</th><th>Qty</th><th>Price</th><th>GST %</th><th>Amount</th></tr></thead>
    <tbody>{rows_html}</tbody>
  </table>
  <div class="invoice-foot">
    <div class="pre small">
      <b>Notes</b><br>{e(inv.notes)}<br><br>
      <b>Terms</b><br>{e(inv.terms)}
    </div>
    <div class="totals">
      {totals_html}
      <div class="total-row grand"><span>Total</span><span>{format_inr(totals["grand_total"])}</span></div>
      <div class="small">{e(rupees_in_words(money(totals["grand_total"])))}</div>
    </div>
  </div>
  {watermark_html}
</div>
"""


# ---------------------------------------------------
# PDF
# ---------------------------------------------------
def generate_invoice_pdf(state, totals):
    p, cl, inv = state.profile, state.client, state.invoice
    buffer = BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    c.setTitle(f"Invoice {inv.number}")
    width, height = A4

    # Set initial coordinates
    x, y = 40, height - 40

    def footer():
        if not state.pro_unlocked:
            c.setFont("Helvetica", 8)
            c.setFillColor(colors.grey)
            c.drawCentredString(width/2, 30, WATERMARK_TEXT)
            c.setFillColor(colors.black)

    # Header Section
    c.setFont("Helvetica-Bold", 14)
    c.drawCentredString(width/2, y, "TAX INVOICE")
    y -= 30

    if _show_logo(state):
        img = load_logo(p.logo)
        if img is not None:
            c.drawImage(ImageReader(img), width - 40 - 80, y - 60, width=80, height=80,
                        preserveAspectRatio=True, mask="auto")

    # Seller Information
    c.setFont("Helvetica-Bold", 12)
    c.drawString(x, y, p.biz_name or "")
    y -= 15
    c.setFont("Helvetica", 9)
    for line in (p.address or "").splitlines():
        c.drawString(x, y, line)
        y -= 12
    c.drawString(x, y, f"GSTIN: {p.gstin or '-'}    State: {p.state}")
    y -= 25

    # Buyer Information + Invoice Details
    c.setFont("Helvetica-Bold", 10)
    c.drawString(x, y, "Bill To:")
    c.drawString(width/2, y, f"Invoice No: {inv.number}")
    y -= 14
    c.setFont("Helvetica", 9)
    left = [cl.name or ""] + (cl.address or "").splitlines() + [
        f"GSTIN: {cl.gstin or '-'}", f"State: {cl.state}"]
    right = [f"Date: {inv.date}"]
    if inv.due:
        right.append(f"Due: {inv.due}")
    right += [f"Place of Supply: {inv.place_of_supply}",
              "IGST" if inv.inter_state else "CGST + SGST"]
    for i in range(max(len(left), len(right))):
        if i < len(left):
            c.drawString(x, y, left[i])
        if i < len(right):
            c.drawString(width/2, y, right[i])
        y -= 12
    y -= 15

    # Table Header
    headers = ["Sr", "Item", "HSN/SAC", "Qty", "Price", "GST %", "Amount"]
    positions = [x, x+25, x+235, x+305, x+345, x+425, x+475]

    def table_header(y):
        c.setFont("Helvetica-Bold", 10)
        for header, pos in zip(headers, positions):
            c.drawString(pos, y, header)
        c.line(x, y - 4, width - 40, y - 4)
        c.setFont("Helvetica", 9)
        return y - 18

    y = table_header(y)

    # Table Items
    for sr, it in enumerate(inv.items, start=1):
        c.drawString(positions[0], y, str(sr))
        c.drawString(positions[1], y, str(it.name or "")[:38])
        c.drawString(positions[2], y, str(it.hsn or ""))
        c.drawString(positions[3], y, _fmt_qty(it.qty))
        c.drawString(positions[4], y, f"{money(it.price):,.2f}")
        c.drawString(positions[5], y, _fmt_rate(it.gst))
        c.drawString(positions[6], y, f"{money(line_amount(it)):,.2f}")
        y -= 15

        # Page break if needed
        if y < 100:
            footer()
            c.showPage()
            y = table_header(height - 40)

    # Totals
    rows = _tax_rows(state, totals) + [("Grand Total", totals["grand_total"])]
    if y < 60 + 15 * (len(rows) + 5):
        footer()
        c.showPage()
        y = height - 40
    y -= 10
    c.line(x, y + 8, width - 40, y + 8)
    for label, value in rows:
        c.setFont("Helvetica-Bold" if label == "Grand Total" else "Helvetica", 10)
        c.drawString(positions[4], y, f"{label}:")
        c.drawRightString(width - 40, y, f"Rs. {money(value):,.2f}")
        y -= 15

    c.setFont("Helvetica-Oblique", 8)
    c.drawString(x, y, rupees_in_words(money(totals["grand_total"])))
    y -= 25

    # Notes & Terms
    for title, text in (("Notes", inv.notes), ("Terms", inv.terms)):
        if not text:
            continue
        c.setFont("Helvetica-Bold", 9)
        c.drawString(x, y, title)
        y -= 12
        c.setFont("Helvetica", 8)
        for line in text.splitlines():
            c.drawString(x, y, line[:110])
            y -= 11
        y -= 6

    footer()
    c.showPage()
    c.save()
    buffer.seek(0)
    return buffer.read()


# ---------------------------------------------------
# Item exports
# ---------------------------------------------------
def _item_rows(state):
    rows = []
    for sr, it in enumerate(state.invoice.items, start=1):
        res = compute_line(it.qty, it.price, it.gst, state.invoice.inter_state)
        rows.append({
            "Sr": sr,
            "Item": it.name,
            "HSN/SAC": it.hsn,
            "Qty": to_number(it.qty),
            "Price": money(it.price),
            "GST%": to_number(it.gst),
            "Amount": money(res["taxable"]),
            "CGST": money(res["cgst"]),
            "SGST": money(res["sgst"]),
            "IGST": money(res["igst"]),
            "LineTotal": money(res["line_total"]),
        })
    return rows


def generate_invoice_xlsx_bytes(state, totals):
    df = pd.DataFrame(_item_rows(state))
    buffer = BytesIO()

    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name="Items")
        totals_df = pd.DataFrame([{k: money(v) if k != "weighted_gst_rate" else v
                                   for k, v in totals.items()}])
        totals_df.to_excel(writer, index=False, sheet_name="Totals")

    buffer.seek(0)
    return buffer.getvalue()


def generate_invoice_csv_bytes(state):
    df = pd.DataFrame(_item_rows(state))
    buffer = BytesIO()
    buffer.write(df.to_csv(index=False).encode('utf-8'))
    buffer.seek(0)
    return buffer.getvalue()


# ---------------------------------------------------
# Share
# ---------------------------------------------------
def build_share_message(state, totals):
    return f"Invoice {state.invoice.number} — Total {format_inr(totals['grand_total'])}"


def share_url(channel, state, totals):
    """Link that opens the invoice summary in a messaging app."""
    text = build_share_message(state, totals)
    if channel == "whatsapp":
        return "https://wa.me/?" + urlencode({"text": text}, quote_via=quote)
    if channel == "email":
        to = quote(state.client.email or "")
        return f"mailto:{to}?" + urlencode({"subject": state.invoice.number, "body": text}, quote_via=quote)
    raise ShareUnavailableError(f"Sharing via '{channel}' is not supported on this device")
