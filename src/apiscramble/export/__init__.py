"""Exporters for API client collection formats.

- PostmanExporter: Postman Collection v2.1
- InsomniaExporter: Insomnia export format v4
"""

from apiscramble.export.base import BaseExporter
from apiscramble.export.insomnia import InsomniaExporter
from apiscramble.export.manager import ExportManager
from apiscramble.export.postman import PostmanExporter

__all__ = [
    "BaseExporter",
    "ExportManager",
    "InsomniaExporter",
    "PostmanExporter",
]
