"""
Tutorial tree model: category -> tutorial -> heading.

Children are computed when a node is expanded, and parents are found again
by looking the category/tutorial up rather than through stored back
pointers, so a refresh never leaves stale references behind. Only headings
with a valid time estimate appear in the tree.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from bs4.element import Tag

from didact.document import TutorialDocument, load_tutorial
from didact.errors import FetchError, ParseError
from didact.headings import AsciiDocHeadingStrategy, strategy_for, total_time
from didact.model import DocumentFormat, HeadingNode, format_minutes
from didact.registry import TutorialRegistry

logger = logging.getLogger(__name__)


class NodeKind(str, Enum):
    CATEGORY = "category"
    TUTORIAL = "tutorial"
    HEADING = "heading"


@dataclass
class TreeNode:
    kind: NodeKind
    label: str
    category: Optional[str] = None
    uri: Optional[str] = None
    description: Optional[str] = None
    collapsible: bool = False


Loader = Callable[[str], Awaitable[TutorialDocument]]

_ADOC = AsciiDocHeadingStrategy()


def heading_tree_node(heading: HeadingNode, uri: Optional[str], category: Optional[str]) -> Optional[TreeNode]:
    if heading.time_label is None:
        return None
    return TreeNode(
        kind=NodeKind.HEADING,
        label=heading.title,
        category=category,
        uri=uri,
        description=heading.time_label,
    )


def get_node_from_adoc_div(div: Tag, tutorial_uri: Optional[str], category: Optional[str]) -> Optional[TreeNode]:
    """
    Heading node for an AsciiDoc block whose classes carry 'time=<n>'.
    None when the block has no heading or no valid estimate.
    """
    heading = _ADOC.heading_for(div)
    if heading is None:
        return None
    return heading_tree_node(heading, tutorial_uri, category)


def node_exists(nodes: List[TreeNode], node: TreeNode) -> bool:
    return any(n.label == node.label for n in nodes)


class TutorialTreeModel:
    def __init__(self, registry: TutorialRegistry, loader: Loader = load_tutorial, retrieve_tutorials: bool = True):
        self.registry = registry
        self.loader = loader
        self.retrieve_tutorials = retrieve_tutorials
        self.tree_nodes: List[TreeNode] = []
        self._listeners: List[Callable[[], None]] = []

    def add_listener(self, callback: Callable[[], None]) -> None:
        self._listeners.append(callback)

    def reset(self) -> None:
        self.tree_nodes = []

    def refresh(self) -> None:
        """
        Throw away the category layer and rebuild it from the registry.
        """
        self.reset()
        if self.retrieve_tutorials:
            self.process_registered_tutorials()
        for callback in list(self._listeners):
            callback()

    def add_child(self, node: TreeNode, nodes: Optional[List[TreeNode]] = None) -> List[TreeNode]:
        siblings = self.tree_nodes if nodes is None else nodes
        if not node_exists(siblings, node):
            siblings.append(node)
        return siblings

    def process_registered_tutorials(self) -> None:
        for category in self.registry.list_categories():
            self.add_child(TreeNode(kind=NodeKind.CATEGORY, label=category, category=category, collapsible=True))

    async def get_children(self, node: Optional[TreeNode] = None) -> List[TreeNode]:
        if node is None:
            return list(self.tree_nodes)
        if node.kind is NodeKind.CATEGORY:
            return await self.tutorials_for_category(node.label)
        if node.kind is NodeKind.TUTORIAL:
            return await self.headings_for_tutorial(node.uri, node.category)
        return []

    async def _load(self, uri: str) -> Optional[TutorialDocument]:
        try:
            return await self.loader(uri)
        except (FetchError, ParseError) as exc:
            logger.warning("Could not load tutorial %s: %s", uri, exc)
            return None

    async def tutorials_for_category(self, category: str) -> List[TreeNode]:
        children: List[TreeNode] = []
        for name in self.registry.list_tutorials(category):
            uri = self.registry.resolve_uri(name, category)
            description = None
            collapsible = False
            if uri:
                doc = await self._load(uri)
                if doc is not None:
                    total = total_time(doc.headings())
                    if total > 0:
                        description = format_minutes(total)
                        collapsible = True
            self.add_child(
                TreeNode(
                    kind=NodeKind.TUTORIAL,
                    label=name,
                    category=category,
                    uri=uri,
                    description=description,
                    collapsible=collapsible,
                ),
                children,
            )
        return children

    async def headings_for_tutorial(self, uri: Optional[str], category: Optional[str]) -> List[TreeNode]:
        children: List[TreeNode] = []
        if not uri:
            return children
        doc = await self._load(uri)
        if doc is None:
            return children

        if doc.format is DocumentFormat.ASCIIDOC:
            nodes = [get_node_from_adoc_div(div, uri, category) for div in _ADOC.candidates(doc.tree)]
        else:
            nodes = [heading_tree_node(h, uri, category) for h in strategy_for(doc.format).extract(doc.tree)]

        for node in nodes:
            if node is not None:
                self.add_child(node, children)
        return children

    def find_category_node(self, category: str) -> Optional[TreeNode]:
        for node in self.tree_nodes:
            if node.label == category:
                return node
        return None

    async def find_tutorial_node(self, category: str, tutorial_name: str) -> Optional[TreeNode]:
        cat_node = self.find_category_node(category)
        if cat_node is None:
            return None
        for node in await self.get_children(cat_node):
            if node.label == tutorial_name and node.category == category:
                return node
        return None

    async def _find_tutorial_by_uri(self, category: str, uri: str) -> Optional[TreeNode]:
        cat_node = self.find_category_node(category)
        if cat_node is None:
            return None
        for node in await self.get_children(cat_node):
            if node.uri == uri and node.category == category:
                return node
        return None

    async def find_heading_node(self, category: str, uri: str, title: str) -> Optional[TreeNode]:
        tutorial = await self._find_tutorial_by_uri(category, uri)
        if tutorial is None:
            return None
        for node in await self.get_children(tutorial):
            if node.label == title:
                return node
        return None

    async def get_parent(self, node: TreeNode) -> Optional[TreeNode]:
        if node.kind is NodeKind.TUTORIAL and node.category:
            return self.find_category_node(node.category)
        if node.kind is NodeKind.HEADING and node.category and node.uri:
            return await self._find_tutorial_by_uri(node.category, node.uri)
        return None
