"""
Local persistence and JSON backup/restore for the bill maker state.

The app never talks to a server: the whole AppState is written as one
JSON document to a file on this device after every change.
"""

import json
import logging
import os
import tempfile
from typing import Optional, Union

from errors import InvalidDocumentError
from invoice_state import AppState, default_state, state_from_dict, state_to_dict

logger = logging.getLogger(__name__)


class StateStore:
    """
    Where the serialized state lives. Subclasses implement read/write.

    read() may hand back text or raw bytes; decoding is left to import_state.
    """

    def read(self) -> Optional[Union[str, bytes]]:
        raise NotImplementedError

    def write(self, text: str):
        raise NotImplementedError


class JsonFileStore(StateStore):
    def __init__(self, path: str):
        self.path = path

    def read(self) -> Optional[bytes]:
        if not os.path.exists(self.path):
            return None
        with open(self.path, "rb") as fh:
            return fh.read()

    def write(self, text: str):
        folder = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(folder, exist_ok=True)
        # write next to the target, then swap in, so a crash never leaves half a file
        fd, tmp_path = tempfile.mkstemp(dir=folder, prefix=".state-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(text)
            os.replace(tmp_path, self.path)
        except Exception:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise


class MemoryStore(StateStore):
    def __init__(self, text: Optional[str] = None):
        self.text = text

    def read(self) -> Optional[str]:
        return self.text

    def write(self, text: str):
        self.text = text


def load_invoice_state(store: StateStore) -> AppState:
    """
    Load the saved state, or the default state if nothing usable is stored.
    """
    try:
        raw = store.read()
    except OSError as e:
        logger.warning("Could not read saved state, using defaults: %s", e)
        return default_state()

    if not raw:
        return default_state()

    try:
        return import_state(raw)
    except InvalidDocumentError as e:
        logger.warning("Saved state is corrupt, using defaults: %s", e)
        return default_state()


def save_invoice_state(store: StateStore, state: AppState):
    store.write(json.dumps(state_to_dict(state), ensure_ascii=False))


# -------------------------
# Import / Export
# -------------------------

def export_state(state: AppState) -> bytes:
    return json.dumps(state_to_dict(state), indent=2, ensure_ascii=False).encode("utf-8")


def export_filename(state: AppState) -> str:
    number = (state.invoice.number or "invoice").strip().replace("/", "-").replace(os.sep, "-")
    return f"gst-bill-{number}.json"


def import_state(data) -> AppState:
    """
    Parse a backup document (bytes or str) into an AppState.

    Raises InvalidDocumentError for anything that is not a bill maker
    state, so the caller can keep its current state.
    """
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidDocumentError("Invalid JSON: not UTF-8 text") from e
    try:
        doc = json.loads(data)
    except (TypeError, ValueError) as e:
        raise InvalidDocumentError(f"Invalid JSON: {e}") from e

    try:
        return state_from_dict(doc)
    except (TypeError, ValueError, OverflowError) as e:
        raise InvalidDocumentError(f"Invalid bill document: {e}") from e
