from __future__ import annotations

import unicodedata


def normalize_for_search(text: str) -> str:
    """Normalize text for contact search.

    Rules:
    - strip diacritics
    - treat ``|`` as a space
    - collapse whitespace
    - lowercase
    """
    decomposed = unicodedata.normalize("NFKD", text)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return " ".join(stripped.replace("|", " ").split()).lower()
