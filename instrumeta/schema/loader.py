# instrumeta/schema/loader.py
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from threading import RLock
from typing import Dict, Iterable, List, Optional, Sequence, Union

import yaml

from ..core.exceptions import SchemaDefinitionError, SchemaNotFoundError
from .model import Schema

logger = logging.getLogger(__name__)

SCHEMA_SUFFIXES = (".yaml", ".yml", ".json")


class SchemaLoader(ABC):
    """Source of raw, unresolved schemas."""

    @abstractmethod
    def load(self, name: str) -> Schema:
        """Return the schema called ``name`` or raise SchemaNotFoundError."""
        pass

    @abstractmethod
    def list(self) -> List[str]:
        """Names of all schemas this loader can provide."""
        pass

    def search(self, query: str) -> List[Schema]:
        """Schemas whose name, domain or description mention ``query``."""
        needle = query.lower()
        matches = []
        for name in self.list():
            schema = self.load(name)
            haystack = " ".join((schema.name, schema.domain, schema.description))
            if needle in haystack.lower():
                matches.append(schema)
        return matches


class InMemorySchemaLoader(SchemaLoader):
    def __init__(self, schemas: Optional[Iterable[Schema]] = None):
        self._lock = RLock()
        self._schemas: Dict[str, Schema] = {}
        for schema in schemas or ():
            self.add(schema)

    def add(self, schema: Schema) -> None:
        with self._lock:
            self._schemas[schema.name] = schema

    def load(self, name: str) -> Schema:
        with self._lock:
            try:
                return self._schemas[name]
            except KeyError:
                raise SchemaNotFoundError(name) from None

    def list(self) -> List[str]:
        with self._lock:
            return sorted(self._schemas)


class DirectorySchemaLoader(SchemaLoader):
    """
    Loads ``<name>.yaml``, ``<name>.yml`` or ``<name>.json`` documents.

    Directories are searched in the order given; the first hit wins. Parsed
    schemas are kept so each document is read at most once.
    """

    def __init__(self, directories: Union[str, Path, Sequence[Union[str, Path]]]):
        if isinstance(directories, (str, Path)):
            directories = [directories]
        self.directories = [Path(directory) for directory in directories]
        self._lock = RLock()
        self._cache: Dict[str, Schema] = {}

    def load(self, name: str) -> Schema:
        with self._lock:
            if name in self._cache:
                return self._cache[name]
            path = self._find(name)
            if path is None:
                raise SchemaNotFoundError(name)
            schema = Schema.from_dict(self._read_document(path))
            if schema.name != name:
                logger.warning(
                    f"Schema file {path} declares name '{schema.name}', "
                    f"expected '{name}'"
                )
            self._cache[name] = schema
            return schema

    def list(self) -> List[str]:
        names = set()
        for directory in self.directories:
            if not directory.is_dir():
                continue
            for path in directory.iterdir():
                if path.suffix.lower() in SCHEMA_SUFFIXES:
                    names.add(path.stem)
        return sorted(names)

    def _find(self, name: str) -> Optional[Path]:
        for directory in self.directories:
            for suffix in SCHEMA_SUFFIXES:
                candidate = directory / f"{name}{suffix}"
                if candidate.is_file():
                    return candidate
        return None

    @staticmethod
    def _read_document(path: Path) -> dict:
        try:
            with path.open("r", encoding="utf-8") as f:
                if path.suffix.lower() == ".json":
                    return json.load(f)
                return yaml.safe_load(f)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise SchemaDefinitionError(f"cannot parse schema file {path}: {e}") from e
