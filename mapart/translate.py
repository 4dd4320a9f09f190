"""Loading localised messages from a JSON language file."""

from __future__ import annotations

import json
import os
import shutil
from pathlib import Path
from typing import Any

DEFAULT_LANGUAGE_FILE = "plugins/image_print/language/lang.json"

PathLike = str | os.PathLike


class Translator:
    """Looks up message templates by key, falling back to the key itself."""

    def __init__(self, lang_file: PathLike = DEFAULT_LANGUAGE_FILE) -> None:
        self.lang_file = Path(lang_file)
        self.resources: Any = {}
        self.load()

    def load(self) -> bool:
        """Load the language file; returns False if it cannot be opened.

        Malformed JSON raises :class:`json.JSONDecodeError`.
        """
        try:
            with self.lang_file.open(encoding="utf-8") as fh:
                text = fh.read()
        except OSError:
            return False
        self.resources = json.loads(text)
        return True

    def get_local(self, key: str) -> str:
        """Return the message for ``key``, or ``key`` when there is none."""
        if isinstance(self.resources, dict) and key in self.resources:
            value = self.resources[key]
            if not isinstance(value, str):
                raise TypeError(f"message for {key!r} is not a string")
            return value
        return key

    def tr(self, key: str, *args: Any) -> str:
        """Return the message for ``key`` with ``{}`` fields filled from ``args``."""
        return self.get_local(key).format(*args)


def sync_language_file(lang_path: PathLike, default_lang_path: PathLike) -> bool:
    """Copy ``lang_path`` over ``default_lang_path`` when they differ.

    Returns True if a copy was made; False if the source is missing, the
    files already match or an error occurred.
    """
    source = Path(lang_path)
    target = Path(default_lang_path)
    if not source.exists():
        return False
    try:
        if target.exists() and source.read_bytes() == target.read_bytes():
            return False
        shutil.copyfile(source, target)
    except OSError:
        return False
    return True