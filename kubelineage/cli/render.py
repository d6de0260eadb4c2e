"""Plain-text tree rendering of a resolved dependent set."""

from __future__ import annotations

from kubelineage.graph.models import Node, NodeMap, sorted_relationships


def describe(node: Node) -> str:
    kind = f"{node.kind}.{node.group}" if node.group else node.kind
    name = f"{node.namespace}/{node.name}" if node.namespace else node.name
    return f"{kind}/{name}"


def render_tree(nodes: NodeMap, root_uid: str) -> list[str]:
    """Render the root and its dependents depth first, one line per edge.

    A node reached through several parents is listed under each of them. A
    node that already appears on the current path is marked ``(cycle)`` and
    not expanded again.
    """
    root = nodes.get(root_uid)
    if root is None:
        return []
    lines = [describe(root)]

    def walk(node: Node, depth: int, path: set[str]) -> None:
        children = sorted(
            (nodes[uid] for uid in node.dependents if uid in nodes),
            key=Node.sort_key,
        )
        for child in children:
            relationships = ", ".join(sorted_relationships(node.dependents[child.uid]))
            line = f"{'  ' * depth}{describe(child)} [{relationships}]"
            if child.uid in path:
                lines.append(f"{line} (cycle)")
                continue
            lines.append(line)
            walk(child, depth + 1, path | {child.uid})

    walk(root, 1, {root.uid})
    return lines
