"""markview - An interactive, collapsible markdown viewer for the terminal."""

from .builder import Document, build_document, build_styled_lines
from .events import Area, MouseEvent, MouseKind
from .projector import Projection, project
from .sections import CollapseState, SectionHierarchy
from .source import MarkdownSource
from .widget import MarkdownView

__all__ = [
    'Document',
    'build_document',
    'build_styled_lines',
    'Area',
    'MouseEvent',
    'MouseKind',
    'Projection',
    'project',
    'CollapseState',
    'SectionHierarchy',
    'MarkdownSource',
    'MarkdownView',
]
