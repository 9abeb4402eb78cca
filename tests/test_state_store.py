import json

import pytest

from errors import InvalidDocumentError
from invoice_state import add_item, default_state, update_client, update_invoice, update_profile
from state_store import (
    JsonFileStore, MemoryStore, export_filename, export_state, import_state,
    load_invoice_state, save_invoice_state,
)


def _populated_state():
    state = default_state()
    update_profile(state, biz_name="Sharma Paving Co.", gstin="08ABCDE1234F1Z5", address="12 MI Road\nJaipur")
    update_client(state, name="Patel Builders", state="Gujarat", email="accounts@patel.example")
    update_invoice(state, number="INV-1042", due="2025-04-30", discount=250, shipping=180,
                   notes="Paid via UPI ✓")
    add_item(state, name="Crack filling", hsn="9954", qty=12.5, price=80, gst=18)
    add_item(state, name="Line striping paint", hsn="3208", qty=4, price=1450, gst=28)
    return state


class TestLoad:
    def test_missing_file_gives_default(self, tmp_path):
        store = JsonFileStore(str(tmp_path / "state.json"))
        state = load_invoice_state(store)
        assert state.invoice.number == "INV-1001"

    def test_empty_store_gives_default(self):
        assert load_invoice_state(MemoryStore("")).profile.biz_name == "Your Business Name"

    @pytest.mark.parametrize("raw", ["{not json", "[]", '{"profile": {}}', "null", '"text"'])
    def test_corrupt_store_gives_default(self, raw):
        state = load_invoice_state(MemoryStore(raw))
        assert state == _default_ignoring_ids(state)

    def test_unreadable_store_gives_default(self):
        class BrokenStore(MemoryStore):
            def read(self):
                raise OSError("disk gone")

        assert load_invoice_state(BrokenStore()).invoice.number == "INV-1001"

    def test_file_with_invalid_bytes_gives_default(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_bytes(b"\xff\xfe\x00garbage")
        assert load_invoice_state(JsonFileStore(str(path))).invoice.number == "INV-1001"

    def test_mistyped_saved_state_gives_default(self):
        raw = '{"profile": {}, "client": {}, "invoice": {"number": 1042, "date": 5}}'
        assert load_invoice_state(MemoryStore(raw)).invoice.number == "INV-1001"


def _default_ignoring_ids(state):
    expected = default_state()
    for mine, theirs in zip(expected.invoice.items, state.invoice.items):
        mine.id = theirs.id
    expected.invoice.date = state.invoice.date
    return expected


class TestSave:
    def test_save_then_load(self, tmp_path):
        store = JsonFileStore(str(tmp_path / "nested" / "state.json"))
        state = _populated_state()
        save_invoice_state(store, state)
        assert load_invoice_state(store) == state

    def test_last_write_wins(self):
        store = MemoryStore()
        state = _populated_state()
        save_invoice_state(store, state)
        update_invoice(state, number="INV-1043")
        save_invoice_state(store, state)
        assert load_invoice_state(store).invoice.number == "INV-1043"

    def test_no_temp_files_left(self, tmp_path):
        store = JsonFileStore(str(tmp_path / "state.json"))
        save_invoice_state(store, _populated_state())
        save_invoice_state(store, _populated_state())
        assert [p.name for p in tmp_path.iterdir()] == ["state.json"]


class TestExportImport:
    def test_round_trip(self):
        state = _populated_state()
        assert len(state.invoice.items) >= 3
        restored = import_state(export_state(state))
        assert restored == state

    def test_export_is_pretty_utf8_json(self):
        data = export_state(_populated_state())
        assert isinstance(data, bytes)
        doc = json.loads(data.decode("utf-8"))
        assert doc["invoice"]["discount"] == 250
        assert "✓" in data.decode("utf-8")
        assert b"\n  " in data

    def test_filename_from_invoice_number(self):
        assert export_filename(_populated_state()) == "gst-bill-INV-1042.json"

    def test_filename_strips_slashes(self):
        state = default_state()
        update_invoice(state, number="2025/26/007")
        assert export_filename(state) == "gst-bill-2025-26-007.json"

    def test_accepts_str(self):
        state = _populated_state()
        assert import_state(export_state(state).decode("utf-8")) == state

    @pytest.mark.parametrize("raw", [b"", b"{", b"\xff\xfe", b"[1, 2]", b'{"profile": {}, "client": {}}'])
    def test_malformed_rejected(self, raw):
        with pytest.raises(InvalidDocumentError):
            import_state(raw)

    def test_rejected_import_leaves_current_state(self):
        current = _populated_state()
        before = export_state(current)
        with pytest.raises(InvalidDocumentError):
            current = import_state(b"garbage")
        assert export_state(current) == before

    @pytest.mark.parametrize("raw", [
        b'{"profile": {}, "client": {}, "invoice": {"number": 1042, "date": 5}}',
        b'{"profile": {}, "client": {"state": ["Goa"]}, "invoice": {}}',
        b'{"profile": {}, "client": {}, "invoice": {"items": [{"hsn": 9954}]}}',
    ])
    def test_mistyped_fields_rejected(self, raw):
        with pytest.raises(InvalidDocumentError):
            import_state(raw)

    def test_huge_quantity_reads_as_zero(self):
        raw = b'{"profile": {}, "client": {}, "invoice": {"items": [{"name": "Tiles", "qty": 1' + b"0" * 400 + b"}]}}"
        state = import_state(raw)
        assert state.invoice.items[0].qty == 0.0
        assert export_filename(state) == "gst-bill-INV-1001.json"
