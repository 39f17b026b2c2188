import unicodedata
from functools import lru_cache


@lru_cache(maxsize=4096)
def remove_accents(text: str) -> str:
    """Remove accents from text.

    Example: "Mysuru Jn Exprés" -> "Mysuru Jn Expres"
    """
    # Normalize to NFD (decomposes accented characters)
    normalized = unicodedata.normalize("NFD", text)
    # Remove combining diacritical marks
    return "".join(c for c in normalized if unicodedata.category(c) != "Mn")


@lru_cache(maxsize=4096)
def normalize_text(text: str) -> str:
    """Normalize text for suggestion matching.

    - Converts to lowercase
    - Removes accents
    - Normalizes whitespace

    Example: "  Côte   Express " -> "cote express"
    """
    result = remove_accents(text.lower().strip())
    return " ".join(result.split())
