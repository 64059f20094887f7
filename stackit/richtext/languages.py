"""
Code-block language registry.

The editor lets users tag a code block with a language purely for syntax
highlighting. The registry maps whatever the client sends (editor labels such
as "Javascript" or "C++", short aliases such as "js" or "ts") to one canonical
name, which ends up in the `language-<name>` class the highlighter keys on.
Unknown names fall back to plain text; nothing is rejected.
"""

from typing import Dict, Iterable, List, Optional, Tuple

PLAINTEXT = "plaintext"


class LanguageRegistry:
    """Case-insensitive alias table for code-block languages."""

    def __init__(self, fallback: str = PLAINTEXT):
        self.fallback = fallback
        self._aliases: Dict[str, str] = {}
        self._labels: Dict[str, str] = {}
        self.register(fallback, label=fallback, aliases=("text", "plain", "txt"))

    def register(
        self,
        name: str,
        label: Optional[str] = None,
        aliases: Iterable[str] = (),
    ) -> None:
        canonical = name.lower()
        self._labels[canonical] = label or name
        self._aliases[canonical] = canonical
        for alias in aliases:
            self._aliases[alias.lower()] = canonical

    def resolve(self, name: Optional[str]) -> str:
        """Canonical language for `name`; the fallback for None/unknown names."""
        if not name:
            return self.fallback
        return self._aliases.get(name.strip().lower(), self.fallback)

    def is_known(self, name: Optional[str]) -> bool:
        return bool(name) and name.strip().lower() in self._aliases

    def choices(self) -> List[Tuple[str, str]]:
        """(canonical name, display label) pairs in registration order."""
        return list(self._labels.items())

    def css_class(self, name: Optional[str]) -> str:
        return f"language-{self.resolve(name)}"


def _build_default_registry() -> LanguageRegistry:
    registry = LanguageRegistry()
    registry.register("json", label="json")
    registry.register("html", label="HTML", aliases=("htm", "xhtml"))
    registry.register("css", label="CSS")
    registry.register("javascript", label="Javascript", aliases=("js", "jsx", "mjs"))
    registry.register("typescript", label="Typescript", aliases=("ts", "tsx"))
    registry.register("python", label="Python", aliases=("py", "python3"))
    registry.register("c", label="C", aliases=("h",))
    registry.register("cpp", label="C++", aliases=("c++", "cc", "cxx", "hpp"))
    registry.register("java", label="Java")
    registry.register("sql", label="SQL")
    registry.register("xml", label="XML", aliases=("svg", "rss"))
    return registry


languages = _build_default_registry()
