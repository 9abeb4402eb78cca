"""
Invoice state for the bill maker.

- Profile, client and invoice live in one AppState snapshot
- Edits go through the update_* functions below (one per entity)
- Serialized with the camelCase keys of the offline app's backups
"""

import random
import string
from dataclasses import dataclass, field, fields, replace
from datetime import date
from typing import Annotated, Dict, List, Optional

from pydantic import BeforeValidator, Field, TypeAdapter

from config import DEFAULT_ITEM_GST, DEFAULT_STATE
from tax_calc import is_inter_state, place_of_supply_for, to_number


_ID_ALPHABET = string.ascii_lowercase + string.digits

# money and quantity fields: anything non-numeric (or too big) reads as 0
Amount = Annotated[float, BeforeValidator(to_number)]
Rate = Annotated[float, Field(ge=0, le=100, allow_inf_nan=False)]


def new_item_id() -> str:
    return "".join(random.choices(_ID_ALPHABET, k=7))


@dataclass
class LineItem:
    id: str = field(default_factory=new_item_id)
    name: str = ""
    hsn: str = ""
    qty: Amount = 1
    price: Amount = 0
    gst: Amount = DEFAULT_ITEM_GST


@dataclass
class Profile:
    biz_name: str = "Your Business Name"
    owner: str = "Owner Name"
    phone: str = ""
    email: str = ""
    address: str = ""
    gstin: str = ""
    state: str = DEFAULT_STATE
    logo: str = ""


@dataclass
class Client:
    name: str = "Client Name"
    phone: str = ""
    email: str = ""
    address: str = ""
    gstin: str = ""
    state: str = DEFAULT_STATE


@dataclass
class Invoice:
    number: str = "INV-1001"
    date: str = field(default_factory=lambda: date.today().isoformat())
    due: str = ""
    place_of_supply: str = DEFAULT_STATE
    inter_state: bool = False
    notes: str = "Thank you for your business."
    terms: str = "Payment due upon receipt."
    items: List[LineItem] = field(default_factory=list)
    shipping: Amount = 0
    discount: Amount = 0


@dataclass
class AppState:
    profile: Profile = field(default_factory=Profile)
    client: Client = field(default_factory=Client)
    invoice: Invoice = field(default_factory=Invoice)
    pro_unlocked: bool = False
    license_key: str = ""
    custom_rates: Optional[List[Rate]] = None


def default_state() -> AppState:
    """Fresh state with one demo item, used on first run and as fallback."""
    demo = LineItem(name="Driveway Sealcoating", hsn="9954", qty=1, price=2500, gst=18)
    return AppState(invoice=Invoice(items=[demo]))


# -------------------------
# Update functions
# -------------------------

def _sync_jurisdiction(app_state: AppState):
    profile, client = app_state.profile, app_state.client
    app_state.invoice.inter_state = is_inter_state(profile.state, client.state)
    app_state.invoice.place_of_supply = place_of_supply_for(profile.state, client.state)


def update_profile(app_state: AppState, **changes):
    """Set business profile fields. Unknown field names raise TypeError."""
    app_state.profile = replace(app_state.profile, **changes)
    if "state" in changes:
        _sync_jurisdiction(app_state)


def update_client(app_state: AppState, **changes):
    app_state.client = replace(app_state.client, **changes)
    if "state" in changes:
        _sync_jurisdiction(app_state)


def update_invoice(app_state: AppState, **changes):
    """
    Set invoice-level fields (number, dates, notes, discount, ...).

    Items are edited through add_item / update_item / remove_item. A hand-picked
    place_of_supply is kept as is and does not re-derive inter_state.
    """
    if "items" in changes:
        raise TypeError("items are edited with add_item/update_item/remove_item")
    app_state.invoice = replace(app_state.invoice, **changes)


def add_item(app_state: AppState, **attrs) -> LineItem:
    item = LineItem(**attrs)
    app_state.invoice.items.append(item)
    return item


def update_item(app_state: AppState, item_id: str, **changes) -> LineItem:
    items = app_state.invoice.items
    for idx, item in enumerate(items):
        if item.id == item_id:
            if "id" in changes:
                raise TypeError("item id cannot be changed")
            items[idx] = replace(item, **changes)
            return items[idx]
    raise KeyError(item_id)


def remove_item(app_state: AppState, item_id: str):
    app_state.invoice.items = [it for it in app_state.invoice.items if it.id != item_id]


# -------------------------
# Serialization helpers
# -------------------------

_PROFILE_KEYS = {"biz_name": "bizName"}
_INVOICE_KEYS = {"place_of_supply": "placeOfSupply", "inter_state": "interState"}

# type-checks backup documents against the dataclasses above
_STATE_ADAPTER = TypeAdapter(AppState)


def _section_to_dict(obj, key_map) -> Dict:
    return {key_map.get(f.name, f.name): getattr(obj, f.name) for f in fields(obj)}


def _section_from_doc(data, key_map, name) -> Dict:
    if not isinstance(data, dict):
        raise ValueError(f"{name} must be an object")
    to_field = {key: field_name for field_name, key in key_map.items()}
    return {to_field.get(key, key): value for key, value in data.items()}


def state_to_dict(state: AppState) -> Dict:
    invoice = _section_to_dict(state.invoice, _INVOICE_KEYS)
    invoice["items"] = [_section_to_dict(it, {}) for it in state.invoice.items]
    data = {
        "profile": _section_to_dict(state.profile, _PROFILE_KEYS),
        "client": _section_to_dict(state.client, {}),
        "invoice": invoice,
        "proUnlocked": state.pro_unlocked,
        "licenseKey": state.license_key,
    }
    if state.custom_rates is not None:
        data["customRates"] = list(state.custom_rates)
    return data


def state_from_dict(data: Dict) -> AppState:
    """
    Build an AppState from a backup dict.

    Missing fields fall back to their defaults and unknown keys are ignored.
    Missing sections or mistyped fields raise ValueError (pydantic's
    ValidationError is one).
    """
    if not isinstance(data, dict):
        raise ValueError("state must be an object")
    for section in ("profile", "client", "invoice"):
        if section not in data:
            raise ValueError(f"missing '{section}' section")

    doc = {
        "profile": _section_from_doc(data["profile"], _PROFILE_KEYS, "profile"),
        "client": _section_from_doc(data["client"], {}, "client"),
        "invoice": _section_from_doc(data["invoice"], _INVOICE_KEYS, "invoice"),
        "pro_unlocked": data.get("proUnlocked", False),
        "license_key": data.get("licenseKey") or "",
        "custom_rates": data.get("customRates"),
    }
    return _STATE_ADAPTER.validate_python(doc)
