import logging
import os
from datetime import date

import streamlit as st

from config import APP_TAGLINE, APP_TITLE, HSN_CSV_PATH, LOG_LEVEL, STATE_FILE, STATES
from errors import GSTBillError, InvalidDocumentError
from hsn_lookup import HSNLookup
from invoice_generator import (
    generate_invoice_csv_bytes, generate_invoice_pdf, generate_invoice_xlsx_bytes,
    render_invoice_html, share_url,
)
from invoice_state import (
    add_item, remove_item, state_to_dict, update_client, update_invoice, update_item,
    update_profile,
)
from licensing import available_gst_rates, set_custom_rates, set_logo, unlock_pro
from state_store import (
    JsonFileStore, export_filename, export_state, import_state, load_invoice_state,
    save_invoice_state,
)
from tax_calc import compute_totals, line_amount, to_number
from utils import apply_hsn_suggestions, encode_logo, format_inr, read_items_file

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("gst_bill_maker")

# ---------------------------------------------------
# PAGE CONFIG
# ---------------------------------------------------
st.set_page_config(page_title=APP_TITLE, layout="wide")

# ---------------------------------------------------
# CUSTOM CSS STYLING
# ---------------------------------------------------
st.markdown("""
    <style>
        .main, .stApp {
            background-color: #fafafa;
        }
        .app-header h2 {
            margin: 0;
            font-weight: 700;
        }
        .app-header p {
            margin: 2px 0;
            font-size: 13px;
            color: #737373;
        }
        .section-title {
            font-size: 20px;
            font-weight: 700;
            border-bottom: 2px solid #171717;
            margin-bottom: 12px;
            padding-bottom: 4px;
        }
        .summary-box {
            background-color: #f5f5f5;
            padding: 12px 18px;
            border-radius: 8px;
            font-weight: 600;
            margin-top: 15px;
            border-left: 4px solid #171717;
        }
        .print-area {
            background-color: white;
            padding: 25px 35px;
            border-radius: 14px;
            border: 1px solid #e5e5e5;
            color: #171717;
        }
        .invoice-head, .invoice-parties, .invoice-foot {
            display: flex;
            justify-content: space-between;
            gap: 24px;
            margin-top: 12px;
        }
        .invoice-logo {
            width: 96px;
            height: 96px;
            object-fit: contain;
        }
        .invoice-table {
            width: 100%;
            margin-top: 16px;
            font-size: 14px;
        }
        .invoice-table th {
            background-color: #f5f5f5;
        }
        .invoice-table .num {
            text-align: right;
        }
        .totals {
            min-width: 280px;
        }
        .total-row {
            display: flex;
            justify-content: space-between;
        }
        .total-row.grand {
            font-weight: 700;
            font-size: 18px;
            border-top: 1px solid #e5e5e5;
            padding-top: 6px;
        }
        .pre {
            white-space: pre-line;
        }
        .small, .muted {
            font-size: 12px;
        }
        .watermark {
            margin-top: 24px;
            text-align: center;
            font-size: 12px;
            color: #a3a3a3;
        }
    </style>
""", unsafe_allow_html=True)


# ---------------------------------------------------
# STATE
# ---------------------------------------------------
store = JsonFileStore(STATE_FILE)

if "app_state" not in st.session_state:
    st.session_state.app_state = load_invoice_state(store)
    st.session_state.saved_snapshot = state_to_dict(st.session_state.app_state)
    # bumped whenever the state is replaced, so widgets pick up the new values
    st.session_state.form_version = 0

state = st.session_state.app_state


def persist():
    snapshot = state_to_dict(state)
    if snapshot == st.session_state.saved_snapshot:
        return
    try:
        save_invoice_state(store, state)
        st.session_state.saved_snapshot = snapshot
    except OSError as e:
        logger.error("Saving state to %s failed: %s", STATE_FILE, e)
        st.error(f"Could not save to this device: {e}")


def wkey(name):
    return f"{name}_v{st.session_state.form_version}"


@st.cache_resource
def get_hsn_lookup(path):
    if not os.path.exists(path):
        logger.warning("HSN table %s not found, suggestions disabled", path)
        return None
    lookup = HSNLookup(path)
    logger.info("Loaded %d HSN/SAC codes from %s", len(lookup), path)
    return lookup


hsn = get_hsn_lookup(HSN_CSV_PATH)


# ---------------------------------------------------
# HEADER: Backup / Restore / Settings
# ---------------------------------------------------
head_col, backup_col, restore_col = st.columns([3, 1, 2])
with head_col:
    st.markdown(f"""
    <div class="app-header">
        <h2>🧾 {APP_TITLE}</h2>
        <p>{APP_TAGLINE}</p>
    </div>
    """, unsafe_allow_html=True)
with backup_col:
    st.download_button("⬇️ Backup",
                       data=export_state(state),
                       file_name=export_filename(state),
                       mime="application/json")
with restore_col:
    restore = st.file_uploader("Restore", type=["json"], key=wkey("restore"),
                               label_visibility="collapsed")
    if restore is not None:
        try:
            st.session_state.app_state = import_state(restore.getvalue())
            st.session_state.form_version += 1
            state = st.session_state.app_state
            persist()
            logger.info("Restored state from %s", restore.name)
            st.rerun()
        except InvalidDocumentError as e:
            logger.warning("Rejected backup %s: %s", restore.name, e)
            st.error("Invalid JSON")

with st.sidebar:
    st.header("⚙️ App Settings")
    st.subheader("Unlock Pro")
    key_input = st.text_input("License key", value=state.license_key, key=wkey("license"),
                              placeholder="Enter license key")
    if state.pro_unlocked:
        st.success("🔓 Unlocked")
    elif st.button("🔒 Unlock"):
        try:
            unlock_pro(state, key_input.strip())
            persist()
            st.rerun()
        except GSTBillError as e:
            st.error(str(e))
    st.caption("Pro removes watermark, adds logo, unlimited clients, custom GST rates.")

    st.subheader("Custom GST Rates" + ("" if state.pro_unlocked else " (Pro)"))
    st.write(" ".join(f"`{r:g}%`" for r in available_gst_rates(state)))
    rates_text = st.text_input("Rates (comma separated)", key=wkey("rates"),
                               value=", ".join(f"{r:g}" for r in available_gst_rates(state)),
                               disabled=not state.pro_unlocked)
    if state.pro_unlocked and st.button("Save rates"):
        try:
            set_custom_rates(state, [r for r in rates_text.split(",") if r.strip()] or None)
            persist()
            st.rerun()
        except (GSTBillError, ValueError) as e:
            st.error(str(e))


# ---------------------------------------------------
# BUSINESS PROFILE / CLIENT
# ---------------------------------------------------
def state_index(value):
    return STATES.index(value) if value in STATES else 0


profile_col, client_col = st.columns(2)

with profile_col:
    st.markdown('<div class="section-title">Business Profile</div>', unsafe_allow_html=True)
    p = state.profile
    c1, c2 = st.columns(2)
    changes = {
        "biz_name": c1.text_input("Business Name", value=p.biz_name, key=wkey("biz_name")),
        "owner": c2.text_input("Owner", value=p.owner, key=wkey("owner")),
        "phone": c1.text_input("Phone", value=p.phone, key=wkey("biz_phone")),
        "email": c2.text_input("Email", value=p.email, key=wkey("biz_email")),
    }
    changes["address"] = st.text_area("Address", value=p.address, height=68, key=wkey("biz_address"))
    c1, c2 = st.columns(2)
    changes["gstin"] = c1.text_input("GSTIN", value=p.gstin, key=wkey("biz_gstin"))
    changes["state"] = c2.selectbox("State", STATES, index=state_index(p.state), key=wkey("biz_state"))
    changes = {k: v for k, v in changes.items() if getattr(p, k) != v}
    if changes:
        update_profile(state, **changes)
        if "state" in changes:
            st.session_state.form_version += 1
            persist()
            st.rerun()

    logo_file = st.file_uploader("Logo" + ("" if state.pro_unlocked else " (Pro)"),
                                 type=["png", "jpg", "jpeg"], key=wkey("logo"),
                                 disabled=not state.pro_unlocked)
    if logo_file is not None and state.pro_unlocked:
        try:
            logo = encode_logo(logo_file.getvalue())
            if logo != state.profile.logo:
                set_logo(state, logo)
        except OSError as e:
            st.error(f"Could not read logo: {e}")

with client_col:
    st.markdown('<div class="section-title">Client</div>', unsafe_allow_html=True)
    cl = state.client
    c1, c2 = st.columns(2)
    changes = {
        "name": c1.text_input("Name", value=cl.name, key=wkey("client_name")),
        "phone": c2.text_input("Phone", value=cl.phone, key=wkey("client_phone")),
        "email": c1.text_input("Email", value=cl.email, key=wkey("client_email")),
        "gstin": c2.text_input("GSTIN", value=cl.gstin, key=wkey("client_gstin")),
    }
    changes["address"] = st.text_area("Address", value=cl.address, height=68, key=wkey("client_address"))
    changes["state"] = st.selectbox("State", STATES, index=state_index(cl.state), key=wkey("client_state"))
    changes = {k: v for k, v in changes.items() if getattr(cl, k) != v}
    if changes:
        update_client(state, **changes)
        if "state" in changes:
            # place of supply / tax mode widgets must show the recomputed values
            st.session_state.form_version += 1
            persist()
            st.rerun()


# ---------------------------------------------------
# INVOICE
# ---------------------------------------------------
st.markdown('<div class="section-title">Invoice</div>', unsafe_allow_html=True)
inv = state.invoice


def parse_date(value):
    try:
        return date.fromisoformat(value) if value else None
    except ValueError:
        return None


c1, c2, c3 = st.columns(3)
changes = {"number": c1.text_input("Invoice No.", value=inv.number, key=wkey("inv_number"))}
inv_date = c2.date_input("Invoice Date", value=parse_date(inv.date) or date.today(), key=wkey("inv_date"))
due_date = c3.date_input("Due Date", value=parse_date(inv.due), key=wkey("inv_due"))
changes["date"] = inv_date.isoformat() if inv_date else ""
changes["due"] = due_date.isoformat() if due_date else ""
c1, c2 = st.columns(2)
changes["place_of_supply"] = c1.selectbox("Place of Supply", STATES, index=state_index(inv.place_of_supply),
                                          key=wkey("inv_pos"))
changes["inter_state"] = c2.toggle("Inter-State (IGST)" if inv.inter_state else "Intra-State (CGST+SGST)",
                                   value=inv.inter_state, key=wkey("inv_inter"))
changes = {k: v for k, v in changes.items() if getattr(inv, k) != v}
if changes:
    update_invoice(state, **changes)

# Items
rates = available_gst_rates(state)
st.markdown("#### Items")
for i, it in enumerate(list(state.invoice.items)):
    cols = st.columns([3, 1.3, 1, 1.3, 1, 1.3, 0.5])
    item_changes = {
        "name": cols[0].text_input("Item", value=it.name, key=wkey(f"name_{it.id}"),
                                   label_visibility="visible" if i == 0 else "collapsed"),
        "hsn": cols[1].text_input("HSN/SAC", value=it.hsn, key=wkey(f"hsn_{it.id}"),
                                  label_visibility="visible" if i == 0 else "collapsed"),
        "qty": cols[2].number_input("Qty", min_value=0.0, value=max(to_number(it.qty), 0.0), key=wkey(f"qty_{it.id}"),
                                    label_visibility="visible" if i == 0 else "collapsed"),
        "price": cols[3].number_input("Price", min_value=0.0, value=max(to_number(it.price), 0.0),
                                      key=wkey(f"price_{it.id}"),
                                      label_visibility="visible" if i == 0 else "collapsed"),
    }
    current_rate = to_number(it.gst)
    item_rates = rates if current_rate in rates else sorted(rates + [current_rate])
    item_changes["gst"] = cols[4].selectbox("GST %", item_rates, index=item_rates.index(current_rate),
                                            format_func=lambda r: f"{r:g}%", key=wkey(f"gst_{it.id}"),
                                            label_visibility="visible" if i == 0 else "collapsed")
    item_changes = {k: v for k, v in item_changes.items() if getattr(it, k) != v}
    if hsn is not None and "hsn" in item_changes and "gst" not in item_changes:
        known_rate = hsn.rate_for_code(item_changes["hsn"])
        if known_rate is not None:
            # known code: take its rate and redraw the row
            update_item(state, it.id, gst=known_rate, **item_changes)
            st.session_state.form_version += 1
            persist()
            st.rerun()
    if item_changes:
        it = update_item(state, it.id, **item_changes)
    cols[5].markdown(("**Amount**<br>" if i == 0 else "") + format_inr(line_amount(it)), unsafe_allow_html=True)
    if cols[6].button("🗑️", key=wkey(f"del_{it.id}")):
        remove_item(state, it.id)
        persist()
        st.rerun()

    # Lookup HSN and GST
    if hsn is not None and it.name and not it.hsn:
        sugg = hsn.suggest(it.name, limit=1)
        if sugg and sugg[0]["score"] >= 60:
            s = sugg[0]
            sc1, sc2 = st.columns([5, 1])
            sc1.caption(f"Suggested HSN: {s['hsn_code']} ({s['description']}) | GST Rate: {s['rate']:g}%")
            if sc2.button("Use", key=wkey(f"use_hsn_{it.id}")):
                update_item(state, it.id, hsn=s["hsn_code"], gst=s["rate"])
                st.session_state.form_version += 1
                persist()
                st.rerun()

add_col, import_col = st.columns([1, 3])
with add_col:
    if st.button("➕ Item"):
        add_item(state)
        persist()
        st.rerun()
with import_col:
    sheet = st.file_uploader("Import items (CSV/XLSX)", type=["csv", "xlsx"], key=wkey("items_sheet"))
    if sheet is not None and st.button("Add items from sheet"):
        try:
            rows = read_items_file(sheet.getvalue(), sheet.name)
            if hsn is not None:
                rows = apply_hsn_suggestions(rows, hsn)
            for row in rows:
                add_item(state, **row)
            logger.info("Imported %d items from %s", len(rows), sheet.name)
            st.session_state.form_version += 1
            persist()
            st.rerun()
        except ValueError as e:
            st.error(f"Could not read {sheet.name}: {e}")

# Notes / totals
notes_col, totals_col = st.columns(2)
with notes_col:
    changes = {
        "notes": st.text_area("Notes", value=inv.notes, key=wkey("inv_notes")),
        "terms": st.text_area("Terms", value=inv.terms, key=wkey("inv_terms")),
    }
with totals_col:
    changes["discount"] = st.number_input("Discount (₹)", min_value=0.0, value=max(to_number(inv.discount), 0.0),
                                          key=wkey("inv_discount"))
    changes["shipping"] = st.number_input("Shipping (₹)", min_value=0.0, value=max(to_number(inv.shipping), 0.0),
                                          key=wkey("inv_shipping"))
changes = {k: v for k, v in changes.items() if getattr(state.invoice, k) != v}
if changes:
    update_invoice(state, **changes)

totals = compute_totals(state.invoice.items, state.invoice.discount, state.invoice.shipping,
                        state.invoice.inter_state)

with totals_col:
    tax_lines = (f"IGST: {format_inr(totals['igst'])}" if state.invoice.inter_state else
                 f"CGST: {format_inr(totals['cgst'])} | SGST: {format_inr(totals['sgst'])}")
    st.markdown(f"""
    <div class="summary-box">
        Subtotal: {format_inr(totals['subtotal'])}<br>
        {tax_lines}<br>
        <b>Total: {format_inr(totals['grand_total'])}</b>
    </div>
    """, unsafe_allow_html=True)

persist()


# ---------------------------------------------------
# PRINT VIEW / DOWNLOADS / SHARE
# ---------------------------------------------------
st.markdown('<div class="section-title">Print View</div>', unsafe_allow_html=True)
st.markdown(render_invoice_html(state, totals), unsafe_allow_html=True)

number = state.invoice.number or "invoice"
col1, col2, col3, col4, col5 = st.columns(5)
with col1:
    st.download_button("📄 Print / PDF",
                       data=generate_invoice_pdf(state, totals),
                       file_name=f"{number}.pdf",
                       mime="application/pdf")
with col2:
    st.download_button("📊 Items (CSV)",
                       data=generate_invoice_csv_bytes(state),
                       file_name=f"{number}.csv",
                       mime="text/csv")
with col3:
    st.download_button("📊 Items (Excel)",
                       data=generate_invoice_xlsx_bytes(state, totals),
                       file_name=f"{number}.xlsx",
                       mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet")
for col, channel, label in ((col4, "whatsapp", "📤 WhatsApp"), (col5, "email", "✉️ Email")):
    with col:
        try:
            st.link_button(label, share_url(channel, state, totals))
        except GSTBillError as e:
            st.info(str(e))

st.caption("Data saves to your device. Works offline. No backend needed.")
