import math


def to_number(value):
    """
    Normalize a user-entered numeric field for the tax calculator.

    None, blanks, booleans, non-numeric text, NaN and infinities all count
    as zero. Numeric text ("2,500.50") is parsed. Never raises.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.strip().replace(",", "")
        if not value:
            return 0.0
    try:
        num = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if not math.isfinite(num):
        return 0.0
    return num


def _field(item, name):
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def line_amount(item):
    """qty x price for one item (not tax-inclusive)."""
    amount = to_number(_field(item, "qty")) * to_number(_field(item, "price"))
    # two huge finite factors can still overflow to inf
    return amount if math.isfinite(amount) else 0.0


def weighted_gst_rate(items):
    """
    Revenue-weighted GST rate across items, as a fraction (0.09 == 9%).

    The invoice discount is flat and applies to the whole bill, so tax is
    taken on the discounted base at the blended rate of the pre-discount
    subtotal.
    """
    items = list(items or [])
    subtotal = sum(line_amount(it) for it in items)
    if subtotal <= 0:
        return 0.0
    return sum(
        (line_amount(it) / subtotal) * (to_number(_field(it, "gst")) / 100)
        for it in items
    )


def compute_totals(items, discount=0, shipping=0, inter_state=False):
    """
    Compute the invoice totals breakdown.
    If inter_state → IGST
    Else → CGST + SGST (half each)
    """
    items = list(items or [])
    discount = to_number(discount)
    shipping = to_number(shipping)

    subtotal = sum(line_amount(it) for it in items)
    taxable = max(subtotal - discount, 0.0)
    rate = weighted_gst_rate(items)
    total_gst = taxable * rate

    igst = cgst = sgst = 0.0
    if inter_state:
        igst = total_gst
    else:
        cgst = total_gst / 2
        sgst = total_gst / 2

    return {
        "subtotal": subtotal,
        "discount": discount,
        "shipping": shipping,
        "taxable_value": taxable,
        "weighted_gst_rate": rate,
        "total_gst": total_gst,
        "cgst": cgst,
        "sgst": sgst,
        "igst": igst,
        "grand_total": taxable + shipping + total_gst,
    }


def compute_line(qty, unit_price, rate, inter_state):
    """
    Tax breakdown for one invoice line, before any invoice discount.
    """
    taxable = line_amount({"qty": qty, "price": unit_price})
    rate = to_number(rate)
    igst = cgst = sgst = 0.0
    if inter_state:
        igst = taxable * rate / 100
    else:
        cgst = taxable * (rate/2) / 100
        sgst = taxable * (rate/2) / 100

    line_total = taxable + cgst + sgst + igst
    return {
        "taxable": taxable,
        "cgst": cgst,
        "sgst": sgst,
        "igst": igst,
        "line_total": line_total
    }


def is_inter_state(business_state, client_state):
    """Supply is inter-state whenever the two states differ."""
    return (business_state or "") != (client_state or "")


def place_of_supply_for(business_state, client_state):
    return client_state or business_state or ""


def money(val):
    """Round to 2 decimals consistently for money values."""
    return round(to_number(val), 2)
