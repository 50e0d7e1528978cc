from __future__ import annotations

import importlib

ulid_module = importlib.import_module("ulid")


def new_object_token() -> str:
    # 48-bit millisecond timestamp followed by 80 random bits.
    return ulid_module.new().str
