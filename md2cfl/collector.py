"""
Publish Markdown files to Confluence wiki.

Copyright 2022-2026, Levente Hunyadi

:see: https://github.com/hunyadi/md2conf
"""

from .tree import Node, NodeKind


def collect(tree: Node, kind: NodeKind) -> list[str]:
    """
    Gathers link or image destinations in a document tree.

    Destinations are returned as authored, in document order, and may repeat.

    :param tree: Root of the document tree.
    :param kind: Either `NodeKind.IMAGE` or `NodeKind.LINK`.
    :returns: Destinations of nodes of the requested type.
    """

    if kind is not NodeKind.IMAGE and kind is not NodeKind.LINK:
        raise ValueError(f"expected: image or link node type; got: {kind}")

    return [node.destination for node, entering in tree.walk() if entering and node.kind is kind]


def collect_images(tree: Node) -> list[str]:
    return collect(tree, NodeKind.IMAGE)


def collect_links(tree: Node) -> list[str]:
    return collect(tree, NodeKind.LINK)
