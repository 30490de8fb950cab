"""Tree-sitter language loader."""

from __future__ import annotations

from functools import lru_cache


@lru_cache(maxsize=1)
def load_python_language():
    """Return the Tree-sitter Language for Python (shared by .py and .pyi)."""
    from tree_sitter import Language

    try:
        import tree_sitter_python as tspython
    except ImportError as exc:  # pragma: no cover - import guard
        raise RuntimeError("tree_sitter_python is not installed") from exc

    # newer bindings expose a `language()` capsule factory, older ones `LANGUAGE`
    if hasattr(tspython, "language"):
        lang = tspython.language
        lang = lang() if callable(lang) else lang
    elif hasattr(tspython, "LANGUAGE"):
        lang = tspython.LANGUAGE
    else:
        raise RuntimeError("Unsupported tree_sitter_python API")

    if isinstance(lang, Language):
        return lang
    return Language(lang)
