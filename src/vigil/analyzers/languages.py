"""File extension to language resolution.

A pure lookup over a static extension table. Unknown extensions resolve to
None, which tells the orchestrators to skip the file without reporting an
error.
"""

from pathlib import PurePath

# Language to file extension mapping
LANGUAGE_EXTENSIONS: dict[str, list[str]] = {
    "javascript": [".js", ".jsx", ".mjs", ".cjs"],
    "typescript": [".ts", ".tsx"],
    "python": [".py"],
    "java": [".java"],
    "go": [".go"],
    "rust": [".rs"],
    "cpp": [".cpp", ".cc", ".cxx", ".hpp", ".h"],
}

# Reverse mapping: extension to language
EXTENSION_TO_LANGUAGE: dict[str, str] = {}
for lang, exts in LANGUAGE_EXTENSIONS.items():
    for ext in exts:
        EXTENSION_TO_LANGUAGE[ext] = lang


def resolve_language(path: str | PurePath) -> str | None:
    """Determine the language for a file based on its extension.

    Args:
        path: File path (only the suffix is inspected)

    Returns:
        Language id or None if unsupported
    """
    suffix = PurePath(path).suffix.lower()
    if not suffix:
        return None
    return EXTENSION_TO_LANGUAGE.get(suffix)


def supported_languages() -> list[str]:
    """Return the list of language ids the resolver knows."""
    return list(LANGUAGE_EXTENSIONS.keys())
