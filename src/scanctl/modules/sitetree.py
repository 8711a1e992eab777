"""Target model used to pick a scan's starting point.

The real site tree lives outside scanctl; scans only need the ``SiteTree``
protocol. ``InMemorySiteTree`` is a small implementation used by the CLI and tests.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Protocol
from urllib.parse import urlsplit


@dataclass(eq=False)
class SiteNode:
    """One node of the site tree: the root, a host, or a path below a host."""

    name: str
    url: str = ""
    in_scope: bool = True
    parent: SiteNode | None = field(default=None, repr=False)
    children: list[SiteNode] = field(default_factory=list, repr=False)

    def child(self, name: str) -> SiteNode | None:
        for node in self.children:
            if node.name == name:
                return node
        return None

    def walk(self) -> Iterator[SiteNode]:
        """Yield this node followed by all descendants, depth first."""
        yield self
        for node in list(self.children):
            yield from node.walk()


class SiteTree(Protocol):
    """What the scan core needs from the site tree."""

    def root(self) -> SiteNode: ...

    def find_node(self, url: str) -> SiteNode | None: ...

    def find_site(self, site: str) -> SiteNode | None: ...


def clean_site_name(name: str) -> str:
    """Strip the scheme and trailing slash from a host node name."""
    for prefix in ("https://", "http://"):
        if name.startswith(prefix):
            name = name[len(prefix) :]
            break
    return name.rstrip("/")


class InMemorySiteTree:
    """Thread-safe site tree built from URLs."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._root = SiteNode(name="Sites")

    def root(self) -> SiteNode:
        return self._root

    def add_url(self, url: str, in_scope: bool = True) -> SiteNode:
        """Insert a URL and any missing ancestors. Returns the leaf node."""
        parts = urlsplit(url)
        if not parts.scheme or not parts.netloc:
            raise ValueError(f"Not an absolute URL: {url!r}")
        host = f"{parts.scheme}://{parts.netloc}"
        with self._lock:
            node = self._root.child(host)
            if node is None:
                node = SiteNode(name=host, url=host + "/", in_scope=in_scope, parent=self._root)
                self._root.children.append(node)
            path = ""
            for segment in [s for s in parts.path.split("/") if s]:
                path += "/" + segment
                child = node.child(segment)
                if child is None:
                    child = SiteNode(
                        name=segment, url=host + path, in_scope=in_scope, parent=node
                    )
                    node.children.append(child)
                node = child
            return node

    def find_node(self, url: str) -> SiteNode | None:
        parts = urlsplit(url)
        if not parts.scheme or not parts.netloc:
            return None
        with self._lock:
            node = self._root.child(f"{parts.scheme}://{parts.netloc}")
            for segment in [s for s in parts.path.split("/") if s]:
                if node is None:
                    return None
                node = node.child(segment)
            return node

    def find_site(self, site: str) -> SiteNode | None:
        """Find the host node whose cleaned name matches ``site`` (e.g. ``example.com``)."""
        wanted = clean_site_name(site)
        with self._lock:
            for node in self._root.children:
                if clean_site_name(node.name) == wanted:
                    return node
        return None
