import base64
import io
import logging
import os
import zipfile
from typing import Dict, List

import pandas as pd # type: ignore
from num2words import num2words
from PIL import Image # type: ignore

from config import DEFAULT_ITEM_GST
from tax_calc import to_number

logger = logging.getLogger(__name__)

LOGO_MAX_SIZE = (240, 240)


def format_inr(amount) -> str:
    """Format a value as Indian rupees with lakh/crore grouping: ₹12,34,567.50"""
    value = round(to_number(amount), 2)
    sign = "-" if value < 0 else ""
    whole, frac = f"{abs(value):.2f}".split(".")
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    return f"{sign}₹{whole}.{frac}"


def rupees_in_words(amount) -> str:
    amt = round(abs(to_number(amount)), 2)
    rupees = int(amt)
    paise = int(round((amt - rupees) * 100))
    parts = []
    if rupees > 0:
        parts.append(num2words(rupees, lang='en_IN').replace('-', ' ').title() + " Rupees")
    if paise > 0:
        parts.append(num2words(paise, lang='en_IN').replace('-', ' ').title() + " Paise")
    if not parts:
        return "Zero Rupees Only"
    return " and ".join(parts) + " Only"


# -------------------------
# Spreadsheet item import
# -------------------------

_COLUMN_ALIASES = {
    "name": ("name", "item", "description", "product"),
    "hsn": ("hsn", "hsn_code", "sac", "hsn/sac"),
    "qty": ("qty", "quantity"),
    "price": ("price", "unit_price", "rate", "amount"),
    "gst": ("gst", "gst_rate", "gst%", "tax_rate"),
}


def _pick_column(columns, aliases):
    for alias in aliases:
        if alias in columns:
            return alias
    return None


def items_from_dataframe(df: pd.DataFrame) -> List[Dict]:
    """
    Read line items from a sheet. Named columns are matched loosely; a sheet
    without a name column is read positionally as name, qty, price.
    """
    df = df.rename(columns=lambda c: str(c).strip().lower())
    cols = {key: _pick_column(df.columns, aliases) for key, aliases in _COLUMN_ALIASES.items()}
    items = []
    for _, row in df.iterrows():
        if cols["name"] is None:
            if len(row) < 3:
                continue
            name, qty, price = row.iloc[0], row.iloc[1], row.iloc[2]
            hsn, gst = "", DEFAULT_ITEM_GST
        else:
            name = row[cols["name"]]
            qty = row[cols["qty"]] if cols["qty"] else 1
            price = row[cols["price"]] if cols["price"] else 0
            hsn = row[cols["hsn"]] if cols["hsn"] else ""
            gst = row[cols["gst"]] if cols["gst"] else DEFAULT_ITEM_GST

        if pd.isna(name) or not str(name).strip():
            continue
        items.append({
            "name": str(name).strip(),
            "hsn": "" if pd.isna(hsn) else str(hsn).strip(),
            "qty": to_number(qty),
            "price": to_number(price),
            "gst": to_number(gst),
        })
    return items


def read_items_file(file_bytes: bytes, filename: str) -> List[Dict]:
    """Items from an uploaded CSV/XLSX sheet. Unreadable files raise ValueError."""
    fname = filename.lower()
    if not fname.endswith((".csv", ".xlsx")):
        raise ValueError(f"Unsupported item file: {filename}")
    try:
        if fname.endswith(".csv"):
            df = pd.read_csv(io.BytesIO(file_bytes))
        else:
            df = pd.read_excel(io.BytesIO(file_bytes))
    except (ValueError, OSError, zipfile.BadZipFile) as e:
        raise ValueError(f"not a readable sheet ({e})") from e
    return items_from_dataframe(df)


def apply_hsn_suggestions(items: List[Dict], hsn_lookup, min_score: float = 80) -> List[Dict]:
    """Fill missing HSN codes (and their GST rate) from the lookup table."""
    normalized = []
    for it in items:
        it = dict(it)
        if not it.get("hsn") and it.get("name"):
            sugg = hsn_lookup.suggest(it["name"], limit=1)
            if sugg and sugg[0]["score"] >= min_score:
                it["hsn"] = str(sugg[0]["hsn_code"])
                it["gst"] = to_number(sugg[0]["rate"])
        normalized.append(it)
    return normalized


# -------------------------
# Logo handling
# -------------------------

def encode_logo(img_bytes: bytes) -> str:
    """Shrink an uploaded logo and return it as a PNG data URI."""
    img = Image.open(io.BytesIO(img_bytes))
    img.thumbnail(LOGO_MAX_SIZE)
    if img.mode not in ("RGB", "RGBA"):
        img = img.convert("RGBA")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")


def load_logo(logo: str):
    """
    Open a stored logo (data URI or local file) as a PIL image.
    Returns None when the logo is empty or cannot be read.
    """
    if not logo:
        return None
    try:
        if logo.startswith("data:"):
            _, encoded = logo.split(",", 1)
            return Image.open(io.BytesIO(base64.b64decode(encoded)))
        if os.path.exists(logo):
            return Image.open(logo)
    except (OSError, ValueError) as e:
        logger.warning("Skipping unreadable logo: %s", e)
        return None
    logger.warning("Skipping logo that is neither a data URI nor a local file")
    return None
