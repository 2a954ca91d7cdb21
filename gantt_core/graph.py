import networkx as nx
from typing import List, Dict, Optional, Any, Sequence
import json

from .task_schema import CanonicalTask, Link


class TaskGraph:
    def __init__(self):
        """Hierarchy (child -> parent) and dependency edges over one transform result."""
        self.graph = nx.DiGraph()

    def add_tasks(self, tasks: Sequence[CanonicalTask]):
        """
        Adds tasks as nodes, then one 'ChildOf' edge per assigned parent.

        Node data keeps the fields the renderer and queries need, including
        note_id so virtual duplicates can be traced back to their note.
        """
        for task in tasks:
            self.graph.add_node(
                task.id,
                note_id=task.note_id,
                text=task.text,
                kind=task.kind,
                start_date=task.start_date,
                end_date=task.end_date,
            )

        for task in tasks:
            if task.parent and self.graph.has_node(task.parent):
                self.graph.add_edge(task.id, task.parent, type="ChildOf")

    def add_links(self, links: Sequence[Link]):
        """Adds dependency links as 'DependsOn' edges (dependent -> predecessor)."""
        for link in links:
            if self.graph.has_node(link.source) and self.graph.has_node(link.target):
                self.graph.add_edge(link.target, link.source, type="DependsOn", link_id=link.id)

    def _hierarchy(self) -> nx.DiGraph:
        return self.graph.edge_subgraph(
            (u, v) for u, v, t in self.graph.edges(data="type") if t == "ChildOf"
        )

    def find_parent_cycles(self) -> List[List[str]]:
        """
        Parent chains that loop back on themselves, e.g. A under B under A.
        Each cycle follows child -> parent order, starting at its smallest id.
        """
        cycles = []
        for c in nx.simple_cycles(self._hierarchy()):
            start = c.index(min(c))
            cycles.append(c[start:] + c[:start])
        return sorted(cycles)

    def children_of(self, task_id: str) -> List[str]:
        if task_id not in self.graph:
            return []
        return [
            child for child, _, t in self.graph.in_edges(task_id, data="type")
            if t == "ChildOf"
        ]

    def roots(self) -> List[str]:
        """Tasks without a parent, in insertion order."""
        return [
            node for node in self.graph.nodes
            if not any(t == "ChildOf" for _, _, t in self.graph.out_edges(node, data="type"))
        ]

    def tasks_for_note(self, note_id: str) -> List[Dict[str, Any]]:
        """Every row (primary and virtual) rendered for one note."""
        return [
            {"id": node_id, **dict(data)}
            for node_id, data in self.graph.nodes(data=True)
            if data.get("note_id") == note_id
        ]

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Serialize the graph to JSON node-link format."""
        return json.dumps(nx.node_link_data(self.graph), indent=indent)
