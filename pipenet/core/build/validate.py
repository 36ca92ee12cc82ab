from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from pipenet.core.models.net import Net
from pipenet.core.models.node import NodeType


@dataclass(frozen=True)
class ValidationIssue:
    level: str              # "error" | "warning"
    message: str
    hint: Optional[str] = None


class NetValidationError(ValueError):
    """Raised when validation finds one or more errors."""
    def __init__(self, issues: List[ValidationIssue]):
        self.issues = issues
        lines = ["Net validation failed with errors:"]
        for it in issues:
            if it.level == "error":
                lines.append(f"- {it.message}" + (f" | hint: {it.hint}" if it.hint else ""))
        super().__init__("\n".join(lines))


def validate_net(net: Net) -> List[ValidationIssue]:
    """
    Validate a Net for structural consistency.
    Returns a list of issues (errors and warnings). If errors exist, caller may raise.

    Core operations tolerate most of these (dangling ids are skipped or pruned
    on reset), so this is meant for data coming from files or editors.
    """
    issues: List[ValidationIssue] = []

    if len(net) == 0:
        issues.append(ValidationIssue(
            "error",
            "Net has zero nodes.",
            "Add at least 2 connected nodes to get a mesh.",
        ))
        return issues

    for nid, n in net.nodes.items():
        if nid != n.id:
            issues.append(ValidationIssue("error", f"Node stored under id {nid} reports id {n.id}."))

        if nid <= 0:
            issues.append(ValidationIssue(
                "warning",
                f"Node(id={nid}) has a non-positive id.",
                "Generated ids start at 1; files written from this net may not load back.",
            ))

        if len(set(n.neighbors)) != len(n.neighbors):
            issues.append(ValidationIssue("warning", f"Node(id={nid}) lists a neighbor more than once."))

        for m in n.neighbors:
            if m == nid:
                issues.append(ValidationIssue("error", f"Node(id={nid}) is connected to itself."))
                continue
            other = net.get_node(m)
            if other is None:
                issues.append(ValidationIssue(
                    "warning",
                    f"Node(id={nid}) references unknown neighbor id={m}.",
                    "Call Net.reset() to prune dangling references.",
                ))
            elif nid not in other.neighbors:
                issues.append(ValidationIssue(
                    "error",
                    f"Adjacency is not symmetric: {nid} lists {m} but {m} does not list {nid}.",
                    "Use Net.connect() instead of editing neighbor lists directly.",
                ))

        for m in n.downstream:
            if m not in n.neighbors:
                issues.append(ValidationIssue("error", f"Node(id={nid}) downstream id={m} is not a neighbor."))

        if n.pressure < 0 or n.pressure != n.pressure:  # NaN check
            issues.append(ValidationIssue("error", f"Node(id={nid}) has invalid pressure {n.pressure!r}."))

        if n.closed and n.type == NodeType.COMMON:
            issues.append(ValidationIssue(
                "warning",
                f"Node(id={nid}) is a common node marked closed.",
                "Closed common nodes are reopened by Net.reset().",
            ))

    if not net.get_node_list(NodeType.SOURCE):
        issues.append(ValidationIssue(
            "warning",
            "Net has no source node; every node will be reported as blocked.",
        ))

    # Count components (simple DFS)
    visited = set()
    comps = 0
    for nid in net.nodes:
        if nid in visited:
            continue
        comps += 1
        stack = [nid]
        while stack:
            cur = stack.pop()
            if cur in visited:
                continue
            visited.add(cur)
            node = net.nodes[cur]
            stack.extend(m for m in node.neighbors if m in net.nodes and m not in visited)

    if comps > 1:
        issues.append(ValidationIssue(
            "warning",
            f"Net appears to have {comps} disconnected components.",
            "If this is unintended, check the neighbor lists.",
        ))

    return issues


def raise_on_errors(issues: List[ValidationIssue]) -> None:
    errors = [i for i in issues if i.level == "error"]
    if errors:
        raise NetValidationError(errors)
