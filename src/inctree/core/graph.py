"""Export include trees as directed graphs (DGML, DOT, Mermaid, JSON)."""

from __future__ import annotations

import enum
import json
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path

from inctree.core.tree import IncludeNode

logger = logging.getLogger(__name__)

DGML_NAMESPACE = "http://schemas.microsoft.com/vs/2009/dgml"


class GraphFormat(enum.Enum):
    DGML = "dgml"
    DOT = "dot"
    MERMAID = "mermaid"
    JSON = "json"


@dataclass(frozen=True)
class GraphNode:
    id: str
    label: str


@dataclass(frozen=True)
class GraphLink:
    source: str
    target: str


@dataclass
class GraphDocument:
    """Nodes and links of an exported include graph. Built fresh for every export."""

    nodes: list[GraphNode] = field(default_factory=list)
    links: list[GraphLink] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Serialize to a node-link dict (for JSON output)."""
        return {
            "directed": True,
            "nodes": [{"id": n.id, "label": n.label} for n in self.nodes],
            "links": [{"source": link.source, "target": link.target} for link in self.links],
        }


def build_graph_document(root: IncludeNode) -> GraphDocument:
    """
    Walk the include tree depth-first and collect one node per file.

    The visited set lives only for this call. An include already visited
    is skipped together with its subtree, so the link to it from a second
    parent is not emitted. The synthetic root is never a node; files it
    includes directly have no incoming link.
    """
    document = GraphDocument()
    visited: set[str] = set()

    def _walk(item: IncludeNode, parent_id: str | None) -> None:
        for child in item.children:
            # Rare, but a header can show up several times in one trace
            if child.raw_path in visited:
                continue
            visited.add(child.raw_path)
            document.nodes.append(GraphNode(id=child.raw_path, label=child.display_name))
            if parent_id is not None:
                document.links.append(GraphLink(source=parent_id, target=child.raw_path))
            _walk(child, child.raw_path)

    _walk(root, None)
    logger.debug(
        "Graph has %d node(s) and %d link(s)", len(document.nodes), len(document.links)
    )
    return document


def generate_dgml(document: GraphDocument) -> str:
    """Serialize to DGML (Visual Studio directed graph markup)."""
    graph = ET.Element("DirectedGraph", xmlns=DGML_NAMESPACE)
    nodes = ET.SubElement(graph, "Nodes")
    for node in document.nodes:
        ET.SubElement(nodes, "Node", Id=node.id, Label=node.label)
    links = ET.SubElement(graph, "Links")
    for link in document.links:
        ET.SubElement(links, "Link", Source=link.source, Target=link.target)
    ET.indent(graph, space="  ")
    return ET.tostring(graph, encoding="utf-8", xml_declaration=True).decode("utf-8")


def _dot_quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def generate_dot(document: GraphDocument, title: str | None = None) -> str:
    """Generate DOT (Graphviz) format."""
    lines = [
        "digraph includes {",
        "    rankdir=LR;",
        '    node [shape=box, style=rounded, fontname="sans-serif"];',
    ]
    if title:
        lines.insert(1, f"    label={_dot_quote(title)};")
        lines.insert(2, "    labelloc=t;")

    for node in document.nodes:
        lines.append(f"    {_dot_quote(node.id)} [label={_dot_quote(node.label)}];")
    for link in document.links:
        lines.append(f"    {_dot_quote(link.source)} -> {_dot_quote(link.target)};")

    lines.append("}")
    return "\n".join(lines)


def _mermaid_label(text: str) -> str:
    return text.replace('"', "#quot;")


def generate_mermaid(document: GraphDocument, title: str | None = None) -> str:
    """Generate Mermaid format. Paths are not valid Mermaid ids, so nodes get n0, n1, ..."""
    lines = ["graph LR"]
    if title:
        lines[0] = f"---\ntitle: {title}\n---\ngraph LR"

    ids: dict[str, str] = {}
    for index, node in enumerate(document.nodes):
        ids[node.id] = f"n{index}"
        lines.append(f'    n{index}["{_mermaid_label(node.label)}"]')
    for link in document.links:
        lines.append(f"    {ids[link.source]} --> {ids[link.target]}")

    return "\n".join(lines)


def render_graph(
    document: GraphDocument,
    graph_format: GraphFormat = GraphFormat.DGML,
    *,
    title: str | None = None,
) -> str:
    """Render a graph document in the requested format."""
    if graph_format is GraphFormat.DOT:
        return generate_dot(document, title=title)
    if graph_format is GraphFormat.MERMAID:
        return generate_mermaid(document, title=title)
    if graph_format is GraphFormat.JSON:
        return json.dumps(document.to_dict(), indent=2)
    return generate_dgml(document)


def write_graph(
    document: GraphDocument,
    path: Path,
    graph_format: GraphFormat | None = None,
    *,
    title: str | None = None,
) -> None:
    """Write a graph document to a file; the format defaults to the file suffix, else DGML."""
    if graph_format is None:
        suffix = path.suffix.lower().lstrip(".")
        graph_format = next((f for f in GraphFormat if f.value == suffix), GraphFormat.DGML)
    path.write_text(render_graph(document, graph_format, title=title), encoding="utf-8")
    logger.info("Wrote %s graph to %s", graph_format.value, path)
