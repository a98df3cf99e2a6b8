"""noteindex: note indexing engine for a personal knowledge base."""

from noteindex.backlinks import Backlink, BacklinkIndex, build_backlink_index
from noteindex.config import EngineConfig, load_config
from noteindex.corpus import Corpus
from noteindex.errors import ConfigError, LoaderError, NoteIndexError, RuleError
from noteindex.folders import FolderTree
from noteindex.graph import Graph, GraphEdge, GraphNode, build_graph
from noteindex.index import NoteIndex
from noteindex.layout import LayoutArena
from noteindex.loader import load_vault
from noteindex.note import Folder, Note, Tag
from noteindex.outline import HeadingNode, parse_outline
from noteindex.parser import Reference, ReferenceStatus, parse_references, parse_wikilinks
from noteindex.resolver import build_title_lookup, extract_references
from noteindex.rules import (
    ContentRule,
    CreatedAtRule,
    FolderRule,
    SmartCollection,
    TagRule,
    evaluate_collection,
    make_rule,
)
from noteindex.search import MatchTier, SearchIndex, SearchMatch

__all__ = [
    "Backlink",
    "BacklinkIndex",
    "build_backlink_index",
    "EngineConfig",
    "load_config",
    "Corpus",
    "ConfigError",
    "LoaderError",
    "NoteIndexError",
    "RuleError",
    "FolderTree",
    "Graph",
    "GraphEdge",
    "GraphNode",
    "build_graph",
    "NoteIndex",
    "LayoutArena",
    "load_vault",
    "Folder",
    "Note",
    "Tag",
    "HeadingNode",
    "parse_outline",
    "Reference",
    "ReferenceStatus",
    "parse_references",
    "parse_wikilinks",
    "build_title_lookup",
    "extract_references",
    "ContentRule",
    "CreatedAtRule",
    "FolderRule",
    "SmartCollection",
    "TagRule",
    "evaluate_collection",
    "make_rule",
    "MatchTier",
    "SearchIndex",
    "SearchMatch",
]
