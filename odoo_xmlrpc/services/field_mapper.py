"""
services/field_mapper.py
------------------------

Client-side validation and coercion of record values against the
metadata a model reports through ``fields_get``.  The mapper works on
already decoded Python data and performs no I/O; loading the metadata
is the caller's job (see :meth:`OdooClient.create_field_mapper`).
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Mapping, Optional

from odoo_xmlrpc.core.errors import ClassifiedError, ErrorKind
from odoo_xmlrpc.schemas.records import FieldInfo, ValidationResult

DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_STRING_TYPES = ("char", "text", "html")
_NUMBER_TYPES = ("float", "monetary")
_X2MANY_TYPES = ("one2many", "many2many")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _matches_format(value: Any, fmt: str) -> bool:
    if not isinstance(value, str):
        return False
    try:
        dt.datetime.strptime(value, fmt)
    except ValueError:
        return False
    return True


class FieldMapper:
    """Validate and transform records for one model."""

    def __init__(self, fields_info: Optional[Mapping[str, Any]] = None) -> None:
        self._fields: Dict[str, FieldInfo] = {}
        if fields_info:
            self.set_fields_info(fields_info)

    def set_fields_info(self, fields_info: Mapping[str, Any]) -> None:
        """Load ``fields_get`` output (raw dicts or :class:`FieldInfo`)."""
        self._fields = {
            name: info if isinstance(info, FieldInfo) else FieldInfo.model_validate(info)
            for name, info in fields_info.items()
        }

    def get_field_info(self, field_name: str) -> Optional[FieldInfo]:
        return self._fields.get(field_name)

    def required_fields(self) -> List[str]:
        return [name for name, info in self._fields.items() if info.required]

    def readonly_fields(self) -> List[str]:
        return [name for name, info in self._fields.items() if info.readonly]

    # -----------------------------------------------------------------
    # validation
    # -----------------------------------------------------------------

    def validate_record(self, record: Mapping[str, Any]) -> ValidationResult:
        """Check every value of ``record`` against the field metadata.

        Reports unknown fields, writes to readonly fields, empty required
        fields and values of the wrong type.  Only the fields present in
        ``record`` are checked.
        """
        errors: List[str] = []
        for name, value in record.items():
            info = self._fields.get(name)
            if info is None:
                errors.append(f"Unknown field: {name}")
                continue
            if info.readonly:
                errors.append(f"Field {name} is readonly")
                continue
            if info.required and (value is None or value == ""):
                errors.append(f"Field {name} is required")
                continue
            errors.extend(self._type_errors(name, value, info))
        return ValidationResult(is_valid=not errors, errors=errors)

    def ensure_valid(self, record: Mapping[str, Any]) -> None:
        """Raise a ``VALIDATION`` error carrying every problem found."""
        result = self.validate_record(record)
        if not result.is_valid:
            raise ClassifiedError(
                ErrorKind.VALIDATION,
                f"Validation error: {len(result.errors)} invalid field(s)",
                validation_errors=result.errors,
            )

    def _type_errors(self, name: str, value: Any, info: FieldInfo) -> List[str]:
        if value is None:
            return []
        kind = info.type

        if kind in _STRING_TYPES:
            if not isinstance(value, str):
                return [f"Field {name} must be a string"]
        elif kind == "integer":
            if not _is_int(value):
                return [f"Field {name} must be an integer"]
        elif kind in _NUMBER_TYPES:
            if not _is_number(value):
                return [f"Field {name} must be a number"]
        elif kind == "boolean":
            if not isinstance(value, bool):
                return [f"Field {name} must be a boolean"]
        elif kind == "date":
            if not _matches_format(value, DATE_FORMAT):
                return [f"Field {name} must be a valid date (YYYY-MM-DD)"]
        elif kind == "datetime":
            if not _matches_format(value, DATETIME_FORMAT):
                return [f"Field {name} must be a valid datetime (YYYY-MM-DD HH:MM:SS)"]
        elif kind == "selection":
            if info.selection:
                allowed = [key for key, _label in info.selection]
                if value not in allowed:
                    return [f"Field {name} must be one of: {', '.join(str(k) for k in allowed)}"]
        elif kind == "many2one":
            if isinstance(value, (list, tuple)):
                if len(value) != 2 or not _is_int(value[0]) or not isinstance(value[1], str):
                    return [f"Field {name} array must be [ID, name] format"]
            elif not _is_int(value):
                return [f"Field {name} must be an integer (ID) or array [ID, name]"]
        elif kind in _X2MANY_TYPES:
            if not isinstance(value, (list, tuple)):
                return [f"Field {name} must be an array"]
            for item in value:
                if not _is_int(item) and not isinstance(item, (list, tuple)):
                    return [f"Field {name} array items must be integers (IDs) or command arrays"]
        elif kind == "binary":
            if not isinstance(value, str):
                return [f"Field {name} must be a base64 encoded string"]
        return []

    # -----------------------------------------------------------------
    # transformation
    # -----------------------------------------------------------------

    def transform_record(self, record: Mapping[str, Any]) -> Dict[str, Any]:
        """Coerce values to what the backend expects.

        Numeric and boolean strings are converted, ``date`` and
        ``datetime`` objects are formatted.  Fields without metadata are
        copied unchanged.
        """
        transformed: Dict[str, Any] = {}
        for name, value in record.items():
            info = self._fields.get(name)
            transformed[name] = value if info is None else self._transform_value(value, info)
        return transformed

    @staticmethod
    def _transform_value(value: Any, info: FieldInfo) -> Any:
        if value is None:
            return value
        kind = info.type
        if kind == "integer":
            if isinstance(value, str):
                try:
                    return int(value.strip())
                except ValueError:
                    return value
            return value
        if kind in _NUMBER_TYPES:
            if isinstance(value, str):
                try:
                    return float(value.strip())
                except ValueError:
                    return value
            return value
        if kind == "boolean":
            if isinstance(value, str):
                return value.strip().lower() in ("true", "1")
            return bool(value)
        if kind == "date":
            if isinstance(value, dt.datetime):
                return value.date().strftime(DATE_FORMAT)
            if isinstance(value, dt.date):
                return value.strftime(DATE_FORMAT)
            return value
        if kind == "datetime":
            if isinstance(value, dt.datetime):
                if value.tzinfo is not None:
                    value = value.astimezone(dt.timezone.utc).replace(tzinfo=None)
                return value.strftime(DATETIME_FORMAT)
            if isinstance(value, dt.date):
                return dt.datetime.combine(value, dt.time()).strftime(DATETIME_FORMAT)
            return value
        return value
