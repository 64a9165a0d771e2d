"""Document outline (bookmarks) dictionary and its items."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import BinaryIO, Callable, Iterable, Optional


def encode_title(title: str) -> str:
    """Hex form of ``title`` in UTF-16BE, as used after a FEFF mark."""
    return title.encode("utf-16-be").hex().upper()


@dataclass
class OutlineObj:
    """One outline item."""

    title: str = ""
    index: int = 0
    dest: int = 0
    parent: int = 0
    prev: int = 0
    next: int = 0
    first: int = 0
    last: int = 0
    height: float = 0.0

    def write(self, stream: BinaryIO, obj_id: int) -> None:
        """Write the outline item dictionary."""
        lines = ["<<\n", f"  /Parent {self.parent} 0 R\n"]
        if self.prev >= 0:
            lines.append(f"  /Prev {self.prev} 0 R\n")
        if self.next >= 0:
            lines.append(f"  /Next {self.next} 0 R\n")
        if self.first > 0:
            lines.append(f"  /First {self.first} 0 R\n")
        if self.last > 0:
            lines.append(f"  /Last {self.last} 0 R\n")
        lines.append(f"  /Dest [ {self.dest} 0 R /XYZ 90 {self.height:f} 0 ]\n")
        lines.append(f"  /Title <FEFF{encode_title(self.title)}>\n")
        lines.append(">>\n")
        stream.write("".join(lines).encode("ascii"))


class OutlinesObj:
    """The /Outlines dictionary; items are registered through ``add_obj``.

    ``add_obj`` stores an object in the document and returns its
    zero-based position.
    """

    def __init__(self, add_obj: Callable[[object], int], index: int = 0) -> None:
        self._add_obj = add_obj
        self.index = index
        self.first = -1
        self.last = -1
        self.count = 0
        self._last_obj: Optional[OutlineObj] = None

    def _append(self, item: OutlineObj) -> None:
        self.last = self._add_obj(item) + 1
        if self.first <= 0:
            self.first = self.last
        if self._last_obj is not None:
            self._last_obj.next = self.last
        self._last_obj = item
        self.count += 1

    def add_outline(self, dest: int, title: str) -> None:
        """Add a top-level item pointing at page object ``dest``."""
        item = OutlineObj(title=title, dest=dest, parent=self.index, prev=self.last, next=-1)
        self._append(item)

    def add_outline_with_position(self, dest: int, title: str, y: float) -> OutlineObj:
        """Add a top-level item pointing at height ``y`` of page ``dest``."""
        item = OutlineObj(
            title=title, dest=dest, parent=self.index, prev=self.last, next=-1, height=y
        )
        self._append(item)
        item.index = self.last
        return item

    def write(self, stream: BinaryIO, obj_id: int) -> None:
        """Write the outlines dictionary."""
        content = "<<\n\t/Type /Outlines\n" f"\t/Count {self.count}\n"
        if self.first >= 0:
            content += f"\t/First {self.first} 0 R\n"
        if self.last >= 0:
            content += f"\t/Last {self.last} 0 R\n"
        content += ">>\n"
        stream.write(content.encode("ascii"))


@dataclass
class OutlineNode:
    """An outline item with its nested items."""

    obj: OutlineObj
    children: list["OutlineNode"] = field(default_factory=list)

    def parse(self) -> None:
        """Link the children to each other and to this item, recursively."""
        children = self.children
        for i, child in enumerate(children):
            is_last = i == len(children) - 1
            if i == 0:
                self.obj.first = child.obj.index
                child.obj.prev = -1
            if is_last:
                self.obj.last = child.obj.index
                child.obj.next = -1
            if i != 0:
                child.obj.prev = children[i - 1].obj.index
            if not is_last:
                child.obj.next = children[i + 1].obj.index
            child.obj.parent = self.obj.index
            child.parse()


def parse_outline_nodes(nodes: Iterable[OutlineNode]) -> None:
    """Link top-level nodes to their neighbours and parse each of them."""
    nodes = list(nodes)
    for i, node in enumerate(nodes):
        if i == 0:
            node.obj.prev = -1
        if i == len(nodes) - 1:
            node.obj.next = -1
        else:
            node.obj.next = nodes[i + 1].obj.index
        node.parse()