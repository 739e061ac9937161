"""Analyzers turning values, annotations, docblocks and rules into types."""

from apiscramble.analyzer.annotations import enum_values, is_optional, type_from_annotation
from apiscramble.analyzer.ast_parser import ClassCollector, ParsedClass, ParsedField, SourceParser
from apiscramble.analyzer.docblock import DocBlockParser
from apiscramble.analyzer.inference import TypeInference
from apiscramble.analyzer.validation import ValidationRuleParser

__all__ = [
    "TypeInference",
    "DocBlockParser",
    "ValidationRuleParser",
    "SourceParser",
    "ClassCollector",
    "ParsedClass",
    "ParsedField",
    "type_from_annotation",
    "enum_values",
    "is_optional",
]
