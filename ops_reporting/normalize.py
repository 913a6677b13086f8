"""Canonical comparison keys for free-text identifiers and labels.

Both functions are total: any input yields a string key or ``None``,
never an exception.
"""

import re
import unicodedata

# Runs of punctuation, underscores and whitespace.
_SEPARATORS = re.compile(r"[\W_]+", re.UNICODE)


def _as_text(raw) -> str | None:
    if raw is None:
        return None
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="ignore")
    try:
        text = str(raw)
    except Exception:
        return None
    return unicodedata.normalize("NFKC", text)


def normalize_label(raw) -> str | None:
    """Case-fold a label and collapse separator runs to single spaces.

    ``" sCrAtCh  "`` and ``"Scratch"`` both become ``"scratch"``;
    ``"Label-mismatch"`` becomes ``"label mismatch"``.
    """
    text = _as_text(raw)
    if text is None:
        return None
    key = _SEPARATORS.sub(" ", text.casefold()).strip()
    return key or None


def normalize_lot_id(raw) -> str | None:
    """Upper-case a lot identifier and drop every separator.

    ``"LOT 1002"``, ``"lot-1002"`` and ``" lot_1002 "`` all become ``"LOT1002"``.
    """
    text = _as_text(raw)
    if text is None:
        return None
    key = _SEPARATORS.sub("", text.upper())
    return key or None
