"""Template syntax tree and parser."""

from bibtmpl.ast.nodes import CURRENT, FilterCall, Literal, Node, Section, Template, Variable
from bibtmpl.ast.parser import Parser, parse_template

__all__ = [
    "CURRENT",
    "FilterCall",
    "Literal",
    "Node",
    "Parser",
    "Section",
    "Template",
    "Variable",
    "parse_template",
]
