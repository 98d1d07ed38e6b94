"""Marker-guarded text patches for config files we do not own.

A ``Patch`` inserts a block of text once. The marker tells whether the block
is already there; anchors say where it goes, tried in order, with
end-of-file as the last resort.
"""

import re
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Pattern, Tuple

from .templates import NGINX_STREAM_BLOCK


@dataclass(frozen=True)
class Anchor:
    """A line to insert next to.

    ``section`` restricts the search to the lines after a ``start`` match and
    before the following ``end`` match.
    """

    label: str
    pattern: Pattern[str]
    where: str = "before"
    section: Optional[Tuple[Pattern[str], Pattern[str]]] = None

    def locate(self, lines) -> Optional[int]:
        """Index at which to insert, or None if the anchor is not found."""
        inside = self.section is None
        for i, line in enumerate(lines):
            text = line.rstrip("\r\n")
            if self.section is not None:
                start, end = self.section
                if start.search(text):
                    inside = True
                    continue
                if inside and end.search(text):
                    inside = False
            if inside and self.pattern.search(text):
                return i if self.where == "before" else i + 1
        return None


@dataclass(frozen=True)
class PatchResult:
    text: str
    inserted: bool
    changed: bool
    anchor: Optional[str] = None


@dataclass(frozen=True)
class Patch:
    name: str
    marker: Pattern[str]
    content: str
    anchors: Tuple[Anchor, ...] = ()
    strip: Optional[Pattern[str]] = None
    append: bool = True

    def is_applied(self, text: str) -> bool:
        return self.marker.search(text) is not None

    def apply(self, text: str) -> PatchResult:
        lines = text.splitlines(keepends=True)
        if self.strip is not None:
            lines = [line for line in lines if not self.strip.search(line.rstrip("\r\n"))]
        base = "".join(lines)

        if self.is_applied(base):
            return PatchResult(base, inserted=False, changed=base != text)

        block = self.content if self.content.endswith("\n") else self.content + "\n"

        for anchor in self.anchors:
            index = anchor.locate(lines)
            if index is None:
                continue
            if index > 0 and not lines[index - 1].endswith("\n"):
                lines[index - 1] += "\n"
            lines.insert(index, block)
            return PatchResult("".join(lines), inserted=True, changed=True, anchor=anchor.label)

        if not self.append:
            return PatchResult(base, inserted=False, changed=base != text)

        if lines and not lines[-1].endswith("\n"):
            lines[-1] += "\n"
        lines.append(block)
        return PatchResult("".join(lines), inserted=True, changed=True, anchor="end of file")

    def apply_to_file(self, path: Path, backup: Optional[Path] = None) -> PatchResult:
        """Patch a file in place, copying it to ``backup`` first if it changes."""
        path = Path(path)
        result = self.apply(path.read_text())
        if result.changed:
            if backup is not None:
                shutil.copy2(path, backup)
            path.write_text(result.text)
        return result


def nginx_stream_patch(block: str = NGINX_STREAM_BLOCK) -> Patch:
    """Put the stream block before the http block, or at the end of nginx.conf."""
    return Patch(
        name="nginx-stream-block",
        marker=re.compile(r"(^|\s)upstream\s+tls_terminator\b|voono stream block", re.MULTILINE),
        content=block,
        anchors=(Anchor("before http block", re.compile(r"^[ \t]*http[ \t]*\{")),),
    )


NGINX_STREAM = nginx_stream_patch()

WIREGUARD_TABLE_OFF = Patch(
    name="wireguard-table-off",
    marker=re.compile(r"^Table *= *off", re.MULTILINE),
    content="Table = off\n",
    anchors=(
        Anchor(
            "after MTU",
            re.compile(r"^MTU *="),
            where="after",
            section=(re.compile(r"^\[Interface\]"), re.compile(r"^\[Peer\]")),
        ),
        Anchor("before [Peer]", re.compile(r"^\[Peer\]")),
    ),
    strip=re.compile(r"^DNS *="),
)
