"""Schema loading utilities for reports and workspace manifests."""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Tuple

import jsonschema
from jsonschema.protocols import Validator

_CONTRACT_ROOT = Path(__file__).resolve().parent / "schemas"
_CATALOG_PATH = _CONTRACT_ROOT / "catalog.json"


@dataclass(frozen=True)
class SchemaDescriptor:
    """Descriptor describing a schema entry from the catalog."""

    document_type: str
    version: str
    schema_id: str
    schema_path: str


_catalog_cache: Dict[str, SchemaDescriptor] | None = None
_schema_cache: Dict[Tuple[str, str], Dict[str, Any]] = {}
_compiled_cache: Dict[str, Validator] = {}


def load_catalog() -> Dict[str, SchemaDescriptor]:
    """Load and cache the schema catalog."""

    global _catalog_cache
    if _catalog_cache is not None:
        return _catalog_cache

    raw_catalog = json.loads(_CATALOG_PATH.read_text("utf-8"))
    catalog: Dict[str, SchemaDescriptor] = {}
    for document_type, payload in raw_catalog.items():
        catalog[document_type] = SchemaDescriptor(
            document_type=document_type,
            version=payload["version"],
            schema_id=payload["schema_id"],
            schema_path=payload["schema_path"],
        )
    _catalog_cache = catalog
    return catalog


def get_descriptor(document_type: str) -> SchemaDescriptor:
    """Return the :class:`SchemaDescriptor` for *document_type*."""

    catalog = load_catalog()
    if document_type not in catalog:
        raise KeyError(f"Unknown document type: {document_type}")
    return catalog[document_type]


def load_schema(schema_id: str, schema_path: str) -> Dict[str, Any]:
    """Load a JSON schema shipped in the local ``schemas`` directory."""

    if "://" in schema_path:
        raise ValueError("Remote schema paths are not permitted")

    resolved = (_CONTRACT_ROOT / schema_path).resolve()
    if not resolved.is_relative_to(_CONTRACT_ROOT):
        raise ValueError("Schema path escapes the contracts directory")

    cache_key = (schema_id, schema_path)
    if cache_key in _schema_cache:
        return copy.deepcopy(_schema_cache[cache_key])

    schema = json.loads(resolved.read_text("utf-8"))
    if "$id" in schema and schema["$id"] != schema_id:
        raise ValueError(
            f"Schema id mismatch: catalog has {schema_id!r}, schema has {schema['$id']!r}"
        )

    _schema_cache[cache_key] = schema
    return copy.deepcopy(schema)


def compile_schema(document_type: str) -> Validator:
    """Return a cached validator for *document_type*."""

    if document_type in _compiled_cache:
        return _compiled_cache[document_type]

    descriptor = get_descriptor(document_type)
    schema_dict = load_schema(descriptor.schema_id, descriptor.schema_path)
    validator_cls = jsonschema.validators.validator_for(schema_dict)
    validator_cls.check_schema(schema_dict)
    validator = validator_cls(schema_dict)
    _compiled_cache[document_type] = validator
    return validator


def _error_path(error: jsonschema.ValidationError) -> str:
    components: List[str] = ["$"]
    for part in error.absolute_path:
        if isinstance(part, int):
            components.append(f"[{part}]")
        else:
            components.append(f".{part}")
    return "".join(components)


def schema_errors(document_type: str, payload: Any) -> List[str]:
    """Return every schema violation of *payload* as ``"<path>: <message>"``."""

    validator = compile_schema(document_type)
    errors = sorted(validator.iter_errors(payload), key=lambda err: list(map(str, err.absolute_path)))
    return [f"{_error_path(error)}: {error.message}" for error in errors]


__all__ = [
    "SchemaDescriptor",
    "compile_schema",
    "get_descriptor",
    "load_catalog",
    "load_schema",
    "schema_errors",
]
