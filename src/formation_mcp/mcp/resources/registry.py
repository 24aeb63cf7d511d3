from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


MARKDOWN_MIME = "text/markdown"


@dataclass(frozen=True)
class ResourceSpec:
    uri: str
    name: str
    description: str = ""
    mime_type: str = MARKDOWN_MIME

    def to_descriptor(self) -> dict[str, Any]:
        d: dict[str, Any] = {"uri": self.uri, "name": self.name, "mimeType": self.mime_type}
        if self.description:
            d["description"] = self.description
        return d


@dataclass
class ResourceRegistry:
    """Read-only content items addressed by URI."""

    _specs: dict[str, ResourceSpec] = field(default_factory=dict)
    _content: dict[str, str] = field(default_factory=dict)

    def register(self, spec: ResourceSpec, text: str) -> None:
        if not isinstance(spec.uri, str) or not spec.uri:
            raise ValueError("resource uri must be non-empty string")
        if spec.uri in self._specs:
            raise ValueError(f"duplicate resource uri: {spec.uri}")
        self._specs[spec.uri] = spec
        self._content[spec.uri] = text

    def list_resources(self) -> list[dict[str, Any]]:
        return [spec.to_descriptor() for spec in self._specs.values()]

    def read(self, uri: str) -> str | None:
        return self._content.get(uri)

    def __len__(self) -> int:
        return len(self._specs)

    @classmethod
    def from_directory(cls, root: str | Path, *, scheme: str = "docs") -> "ResourceRegistry":
        """Load every `*.md` file under `root` as `<scheme>://<relative/stem>`.

        A missing directory yields an empty registry.
        """
        reg = cls()
        base = Path(root)
        if not base.is_dir():
            return reg

        for p in sorted(base.rglob("*.md")):
            rel = p.relative_to(base).with_suffix("").as_posix()
            text = p.read_text(encoding="utf-8")
            reg.register(
                ResourceSpec(uri=f"{scheme}://{rel}", name=rel, description=_first_heading(text)),
                text,
            )
        return reg


def _first_heading(text: str) -> str:
    for line in text.splitlines():
        s = line.strip()
        if s.startswith("#"):
            return s.lstrip("#").strip()
    return ""
