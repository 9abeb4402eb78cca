import os

# ---------------------------------------------------
# APP SETTINGS (override with environment variables)
# ---------------------------------------------------
APP_TITLE = "GST Bill Maker"
APP_TAGLINE = "Offline invoice & estimate maker for India"

STATE_FILE = os.environ.get(
    "GST_BILL_STATE_FILE",
    os.path.join(os.path.expanduser("~"), ".gst_bill_maker", "state.json"),
)
HSN_CSV_PATH = os.environ.get("GST_BILL_HSN_CSV", os.path.join("data", "hsn_codes.csv"))
LOG_LEVEL = os.environ.get("GST_BILL_LOG_LEVEL", "INFO").upper()

# ---------------------------------------------------
# TAX DEFAULTS
# ---------------------------------------------------
DEFAULT_GST_RATES = [0, 5, 12, 18, 28]
DEFAULT_ITEM_GST = 18

STATES = [
    "Andhra Pradesh", "Arunachal Pradesh", "Assam", "Bihar", "Chhattisgarh",
    "Delhi", "Goa", "Gujarat", "Haryana", "Himachal Pradesh", "Jammu & Kashmir",
    "Jharkhand", "Karnataka", "Kerala", "Madhya Pradesh", "Maharashtra",
    "Manipur", "Meghalaya", "Mizoram", "Nagaland", "Odisha", "Puducherry",
    "Punjab", "Rajasthan", "Sikkim", "Tamil Nadu", "Telangana", "Tripura",
    "Uttarakhand", "Uttar Pradesh", "West Bengal",
]
DEFAULT_STATE = "Rajasthan"

# ---------------------------------------------------
# LICENSING
# ---------------------------------------------------
# Offline check only; replace with your own keys when selling
LICENSE_KEY_PATTERN = r"^NSQ-(?:2025|2026)-[A-Z0-9]{6}$"
WATERMARK_TEXT = "Made with GST Bill Maker — Free version"
