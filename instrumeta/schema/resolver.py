# instrumeta/schema/resolver.py
import copy
import logging
from threading import RLock
from typing import Dict, Tuple

from ..core.exceptions import SchemaDefinitionError
from .loader import SchemaLoader
from .model import Schema

logger = logging.getLogger(__name__)


class SchemaResolver:
    """Applies ``extends`` inheritance and caches the merged schemas.

    For every parent, in declaration order, fields the child does not define
    are copied in, so the child always wins a name conflict. The parent's
    required list is appended to the child's without removing duplicates.
    Loader-owned schemas are never modified.
    """

    def __init__(self, loader: SchemaLoader):
        self.loader = loader
        self._lock = RLock()
        self._cache: Dict[str, Schema] = {}

    def resolve(self, name: str) -> Schema:
        """Return a private copy of the merged schema; the cache stays untouched."""
        with self._lock:
            return copy.deepcopy(self._resolve(name, ()))

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    def _resolve(self, name: str, chain: Tuple[str, ...]) -> Schema:
        if name in chain:
            cycle = " -> ".join(chain + (name,))
            raise SchemaDefinitionError(f"circular schema inheritance: {cycle}")
        if name in self._cache:
            return self._cache[name]

        merged = copy.deepcopy(self.loader.load(name))
        for parent_name in merged.extends:
            parent = self._resolve(parent_name, chain + (name,))
            self._merge_parent(merged, parent)

        self._cache[name] = merged
        logger.debug(
            f"Resolved schema '{name}' with {len(merged.fields)} fields "
            f"from parents {merged.extends}"
        )
        return merged

    @staticmethod
    def _merge_parent(child: Schema, parent: Schema) -> None:
        for field_name, field_schema in parent.fields.items():
            if field_name not in child.fields:
                child.fields[field_name] = copy.deepcopy(field_schema)
        child.required_fields.extend(parent.required_fields)
        for term, iri in parent.ontology_mappings.items():
            child.ontology_mappings.setdefault(term, iri)
        child.validation_rules.extend(copy.deepcopy(parent.validation_rules))
