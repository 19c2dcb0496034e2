"""
Field Schema Normalizer - Raw project fields to normalized Field values.

Rules:
- plain fields become ``{id, type}`` with the lowercased data type
- single-select fields map option name -> option id
- iteration fields map iteration title -> iteration id

The normalized mapping always replaces whatever was recorded before; there
is no per-option merge.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from pulsegh.core.domain.entities import Field
from pulsegh.core.domain.enums import FieldCategory
from pulsegh.core.exceptions import DuplicateFieldError
from pulsegh.core.ports.query_gateway import RawField


logger = logging.getLogger("FieldSchemaNormalizer")


def normalize_field(raw: RawField) -> Field:
    """Normalize one raw field definition."""
    category = FieldCategory.from_data_type(raw.data_type)

    if category is FieldCategory.SINGLE_SELECT:
        return Field.single_select(raw.id, {str(o["name"]): str(o["id"]) for o in raw.options})

    if category is FieldCategory.ITERATION:
        return Field.iteration(raw.id, {str(i["title"]): str(i["id"]) for i in raw.iterations})

    return Field.plain(raw.id, raw.data_type)


def normalize_fields(
    raw_fields: Iterable[RawField],
    project: str | int | None = None,
) -> dict[str, Field]:
    """
    Normalize a project's field list into a name -> Field mapping.

    Args:
        raw_fields: Field definitions in remote order
        project: Project label used in error messages

    Returns:
        Mapping in remote order

    Raises:
        DuplicateFieldError: If two fields share a name
    """
    fields: dict[str, Field] = {}
    for raw in raw_fields:
        if raw.name in fields:
            raise DuplicateFieldError(raw.name, project=project)
        fields[raw.name] = normalize_field(raw)

    logger.debug(f"Normalized {len(fields)} fields for project {project}")
    return fields


def to_raw_field(name: str, field: Field) -> RawField:
    """
    Re-derive the raw shape of a normalized field.

    The inverse of ``normalize_field`` for single-select and iteration
    fields: option and iteration order follows the mapping order.
    """
    if field.category is FieldCategory.SINGLE_SELECT:
        return RawField(
            id=field.id,
            name=name,
            data_type="SINGLE_SELECT",
            options=[{"id": oid, "name": oname} for oname, oid in field.options.items()],
        )
    if field.category is FieldCategory.ITERATION:
        return RawField(
            id=field.id,
            name=name,
            data_type="ITERATION",
            iterations=[{"id": iid, "title": title} for title, iid in field.iterations.items()],
        )
    return RawField(id=field.id, name=name, data_type=field.type.upper())


