"""Save/load of simulation snapshots in a JSON key-value file store.

Payload layout::

    {"version": 1, "savedAt": <ms since epoch>, "state": {
        "people": [...], "allPeople": [...], "food": 135, "year": -7999,
        "nextId": 6, "logs": [...], "history": [...]}}

The store validates before handing anything back: a snapshot that fails the
check is reported as a warning and treated as absent.
"""

from __future__ import annotations

import json
import os
import time
from typing import Any, Optional

from chronicles.core.config import SAVE_VERSION, STORAGE_KEY, VALIDATION_SAMPLE_SIZE
from chronicles.viz.logger import SimLogger

_NUMBER = (int, float)
_PERSON_FIELDS: dict[str, tuple] = {
    "id": (int,),
    "name": (str,),
    "gender": (str,),
    "age": (int,),
    "isAlive": (bool,),
}
_PERSON_OPTIONAL: dict[str, tuple] = {
    "motherId": (int,),
    "fatherId": (int,),
    "spouseId": (int,),
    "birthYear": (int,),
    "deathYear": (int,),
}
_HISTORY_FIELDS: dict[str, tuple] = {
    "year": (int,),
    "population": (int,),
    "births": (int,),
    "food": _NUMBER,
}


def _is_type(value: Any, types: tuple) -> bool:
    # bool is an int subclass; only accept it where bool is asked for
    if isinstance(value, bool) and bool not in types:
        return False
    return isinstance(value, types)


def _check_record(record: Any, required: dict, optional: dict, where: str) -> Optional[str]:
    if not isinstance(record, dict):
        return f"{where} is not an object"
    for key, types in required.items():
        if key not in record:
            return f"{where} is missing '{key}'"
        if not _is_type(record[key], types):
            return f"{where}.{key} has the wrong type"
    for key, types in optional.items():
        if record.get(key) is not None and not _is_type(record[key], types):
            return f"{where}.{key} has the wrong type"
    return None


def _check_sample(items: list, required: dict, optional: dict, label: str) -> Optional[str]:
    # Large collections are spot-checked at the head only.
    for i, item in enumerate(items[:VALIDATION_SAMPLE_SIZE]):
        problem = _check_record(item, required, optional, f"{label}[{i}]")
        if problem:
            return problem
    return None


def validate_payload(payload: Any) -> tuple[bool, str]:
    """Structural check of a stored payload. Returns (ok, reason)."""
    if not isinstance(payload, dict):
        return False, "payload is not an object"
    version = payload.get("version")
    if not _is_type(version, (int,)):
        return False, "missing or invalid version"
    if version > SAVE_VERSION:
        return False, f"unsupported save version {version} (supported: {SAVE_VERSION})"

    state = payload.get("state")
    if not isinstance(state, dict):
        return False, "missing state"
    for key, types in (("food", _NUMBER), ("year", (int,)), ("nextId", (int,))):
        if not _is_type(state.get(key), types):
            return False, f"state.{key} is missing or has the wrong type"
    for key in ("people", "logs", "history"):
        if not isinstance(state.get(key), list):
            return False, f"state.{key} is not a list"
    if "allPeople" in state and not isinstance(state["allPeople"], list):
        return False, "state.allPeople is not a list"

    problem = (
        _check_sample(state["people"], _PERSON_FIELDS, _PERSON_OPTIONAL, "people")
        or _check_sample(state.get("allPeople", []), _PERSON_FIELDS, _PERSON_OPTIONAL, "allPeople")
        or _check_sample(state["history"], _HISTORY_FIELDS, {}, "history")
    )
    if problem:
        return False, problem
    for person in state["people"][:VALIDATION_SAMPLE_SIZE]:
        if person["gender"] not in ("male", "female"):
            return False, f"unknown gender '{person['gender']}'"
        if person["age"] < 0:
            return False, "negative age"
    if not all(isinstance(line, str) for line in state["logs"][:VALIDATION_SAMPLE_SIZE]):
        return False, "logs must be strings"
    return True, ""


def build_payload(state: dict, saved_at: Optional[int] = None) -> dict:
    if saved_at is None:
        saved_at = int(time.time() * 1000)
    return {"version": SAVE_VERSION, "state": state, "savedAt": saved_at}


class JsonFileStore:
    """Key-value blob store: one ``<key>.json`` file per key in a directory."""

    def __init__(
        self,
        directory: str,
        key: str = STORAGE_KEY,
        logger: Optional[SimLogger] = None,
    ) -> None:
        self.directory = directory
        self.key = key
        self.logger = logger or SimLogger(verbosity=0, stdout=False)

    @property
    def path(self) -> str:
        return os.path.join(self.directory, f"{self.key}.json")

    def load(self) -> Optional[dict]:
        """Return the stored state, or None when absent or unusable."""
        if not os.path.exists(self.path):
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                payload = json.load(f)
        except (OSError, ValueError) as e:
            self.logger.warning(f"Could not read saved game: {e}", path=self.path)
            return None

        ok, reason = validate_payload(payload)
        if not ok:
            self.logger.warning(f"Discarding saved game: {reason}", path=self.path)
            return None
        return payload["state"]

    def save(self, state: dict) -> bool:
        """Write the state. Failures are logged and reported as False."""
        payload = build_payload(state)
        tmp_path = self.path + ".tmp"
        try:
            os.makedirs(self.directory, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(payload, f)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            self.logger.warning(f"Could not save game: {e}", path=self.path)
            return False
        return True

    def clear(self) -> None:
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.warning(f"Could not clear saved game: {e}", path=self.path)
