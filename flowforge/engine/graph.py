from typing import Dict, Any, List, Optional, Iterable, Union
import logging

from .models import BaseNode, Connection, BranchType, NodeType, parse_node

logger = logging.getLogger(__name__)


class WorkflowGraph:
    """
    Read-only snapshot of a workflow's nodes and edges for one run.

    Nodes are held in a dict keyed by id and edges in declaration order, so
    cyclic graphs need no special handling: everything is looked up by id.
    When several edges match a lookup, the first declared one wins.
    """

    def __init__(self, nodes: Iterable[Union[BaseNode, Dict[str, Any]]], edges: Iterable[Union[Connection, Dict[str, Any]]]):
        self.node_list: List[BaseNode] = [
            n if isinstance(n, BaseNode) else parse_node(n) for n in nodes
        ]
        self.nodes: Dict[str, BaseNode] = {}
        for node in self.node_list:
            # Keep the first declaration of a duplicated id
            self.nodes.setdefault(node.id, node)
        self.edges: List[Connection] = [
            e if isinstance(e, Connection) else Connection.model_validate(e) for e in edges
        ]

    def get_node(self, node_id: str) -> Optional[BaseNode]:
        return self.nodes.get(node_id)

    def find_start_node(self) -> Optional[BaseNode]:
        return next((n for n in self.node_list if n.type == NodeType.START), None)

    def outgoing(self, source: str) -> List[Connection]:
        return [e for e in self.edges if e.source == source]

    def find_edge(self, source: str, branch: BranchType) -> Optional[Connection]:
        """First outgoing edge of `source` tagged with `branch`."""
        return next((e for e in self.edges if e.source == source and e.type == branch), None)

    def find_edge_between(self, source: str, target: str) -> Optional[Connection]:
        return next((e for e in self.edges if e.source == source and e.target == target), None)

    def validate(self) -> List[str]:
        """
        Report structural problems without raising.

        Only a missing START node stops a run; everything else listed here
        is tolerated by the engine but usually points at an editing mistake.
        """
        issues: List[str] = []

        starts = [n for n in self.node_list if n.type == NodeType.START]
        if not starts:
            issues.append("No START node found")
        elif len(starts) > 1:
            issues.append(
                f"Multiple START nodes ({', '.join(n.id for n in starts)}); '{starts[0].id}' is used"
            )

        seen_ids = set()
        for node in self.node_list:
            if node.id in seen_ids:
                issues.append(f"Duplicate node id '{node.id}'")
            seen_ids.add(node.id)

        seen_branches = set()
        for edge in self.edges:
            source = self.get_node(edge.source)
            target = self.get_node(edge.target)
            if source is None:
                issues.append(f"Edge '{edge.id}' references missing source '{edge.source}'")
            if target is None:
                issues.append(f"Edge '{edge.id}' references missing target '{edge.target}'")
            if target is not None and target.type == NodeType.START:
                issues.append(f"Edge '{edge.id}' points into START node '{edge.target}'")
            if source is not None and source.type == NodeType.END:
                issues.append(f"Edge '{edge.id}' leaves END node '{edge.source}' and is never followed")
            if (
                source is not None
                and source.type != NodeType.CONDITION
                and edge.type != BranchType.DEFAULT
            ):
                issues.append(
                    f"Edge '{edge.id}' has branch type '{edge.type.value}' but source '{edge.source}' is not a CONDITION"
                )

            key = (edge.source, edge.type)
            if key in seen_branches:
                issues.append(
                    f"Duplicate '{edge.type.value}' edge from '{edge.source}'; edge '{edge.id}' is ignored"
                )
            seen_branches.add(key)

        return issues
