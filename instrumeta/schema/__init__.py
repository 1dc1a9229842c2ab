from .loader import DirectorySchemaLoader, InMemorySchemaLoader, SchemaLoader
from .model import FieldSchema, Range, Schema, ValidationRule
from .resolver import SchemaResolver

__all__ = [
    "DirectorySchemaLoader",
    "FieldSchema",
    "InMemorySchemaLoader",
    "Range",
    "Schema",
    "SchemaLoader",
    "SchemaResolver",
    "ValidationRule",
]
