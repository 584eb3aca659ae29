"""Schema-constrained parsing of model output.

Two deliberately different entry points:

- ``parse`` is lenient. It repairs what it can (fences, prose, trailing
  commas, quote styles, bare keys) and coerces through pydantic, raising a
  typed ``ParseError`` for the retry controller when it cannot.
- ``validate`` is strict. It never repairs and never raises; it reports every
  structural mismatch it finds, with a path for each.

``parse`` does not wrap a lone scalar into a one-element array when the target
expects a list; that is reported as a decoding failure on the field. Coercion
runs pydantic in strict JSON mode, so ``"7"`` is not an int and ``"yes"`` is not
a bool. Nested objects still decode into models and ints still widen to floats.
"""

from __future__ import annotations

from typing import Any, Generic, Iterator, List, Mapping, Optional, Type, TypeVar

import orjson
from loguru import logger
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ..config import Config
from ..errors import (
    DecodingFailedError,
    EmptyContentError,
    InvalidJSONError,
    ParseError,
    SchemaValidationFailedError,
)
from ..models import Failure, StructuredResult, Success, ValidationIssue
from ..utils.json_utils import (
    complete_partial_json,
    extract_json,
    find_loose_json,
    quote_bare_keys,
    remove_trailing_commas,
    repair_quotes,
    safe_loads,
)
from ..utils.text_utils import TextUtils
from .schema import FieldSpec, coerce_description, describe_type, format_path, json_type_name, type_matches

T = TypeVar("T")


def _join(prefix: str, name: str) -> str:
    return f"{prefix}.{name}" if prefix else name


def _preview(value: Any) -> str:
    return TextUtils.truncate_text(value, 40)


class StructuredOutputParser(Generic[T]):
    """Parses and validates model output against a target type."""

    def __init__(self, target: Type[T], schema: Any = None, *, strict: bool = False):
        self.target = target
        self._adapter: TypeAdapter = TypeAdapter(target)
        self.description: FieldSpec = coerce_description(schema) if schema is not None else describe_type(target)
        self.strict = strict

    @property
    def json_schema(self) -> dict:
        return self._adapter.json_schema()

    # ----------------------------------------------------------------- repair
    def auto_correct(self, raw: str) -> Optional[str]:
        """Return the most plausible JSON text in ``raw`` after cheap repairs."""
        candidate = extract_json(raw) or find_loose_json(raw)
        if candidate is None:
            return None
        return remove_trailing_commas(candidate)

    @staticmethod
    def _loads_with_repair(candidate: str) -> Any:
        try:
            return safe_loads(candidate)
        except ValueError as first_error:
            repaired = remove_trailing_commas(quote_bare_keys(repair_quotes(candidate)))
            if repaired == candidate:
                raise
            try:
                return safe_loads(repaired)
            except ValueError:
                raise first_error from None

    def _coerce(self, data: Any) -> T:
        return self._adapter.validate_json(orjson.dumps(data), strict=True)

    # ------------------------------------------------------------------ parse
    def parse(self, raw: str) -> T:
        content = raw or ""
        if not content.strip():
            raise EmptyContentError(content=content)

        candidate = self.auto_correct(content)
        if candidate is None:
            raise InvalidJSONError("no JSON object or array found", content=content)

        try:
            data = self._loads_with_repair(candidate)
        except ValueError as exc:
            raise InvalidJSONError(str(exc), content=content) from exc

        try:
            value = self._coerce(data)
        except PydanticValidationError as exc:
            first = exc.errors()[0]
            field = format_path(first.get("loc", ())) or None
            raise DecodingFailedError(first.get("msg", str(exc)), field=field, content=content) from exc

        if self.strict:
            issues = list(self._check_value(data, self.description, ""))
            if issues:
                raise SchemaValidationFailedError(
                    issues[0].field, [issue.message for issue in issues], content=content
                )

        logger.debug(f"[parse] decoded {getattr(self.target, '__name__', self.target)}")
        return value

    def try_parse(self, raw: str) -> StructuredResult[T]:
        try:
            return Success(self.parse(raw))
        except ParseError as exc:
            return Failure(exc)

    # ---------------------------------------------------------------- partial
    def loads_partial(self, raw: str) -> Optional[Any]:
        """Best-effort decode of an unfinished reply, closing what is open."""
        if not raw or not raw.strip():
            return None
        if found := extract_json(raw):
            return safe_loads(found)
        body = raw
        fence = body.find("```")
        if fence != -1:
            body = TextUtils.strip_code_fences(body[fence:])
        completed = complete_partial_json(body)
        if completed is None:
            return None
        try:
            return safe_loads(remove_trailing_commas(completed))
        except ValueError:
            return None

    def parse_partial(self, raw: str) -> Optional[T]:
        return self.coerce_partial(self.loads_partial(raw))

    def coerce_partial(self, data: Any) -> Optional[T]:
        if data is None:
            return None
        try:
            return self._coerce(data)
        except PydanticValidationError:
            return None

    def estimate_progress(self, data: Any) -> Optional[float]:
        """Fraction of the described top-level fields already present."""
        fields = self.description.properties
        if not fields or not isinstance(data, dict):
            return None
        present = sum(1 for name in fields if name in data)
        return present / len(fields)

    # --------------------------------------------------------------- validate
    def validate(self, raw: str) -> List[ValidationIssue]:
        try:
            data = safe_loads((raw or "").strip())
        except ValueError:
            preview = TextUtils.truncate_text(raw or "", Config.LOG_PREVIEW_MAX)
            logger.debug(f"[parse] validate got invalid JSON: {preview}")
            return [ValidationIssue(field="root", expected=self.description.type, observed="invalid JSON")]
        return list(self._check_value(data, self.description, ""))

    def _check_value(self, value: Any, spec: FieldSpec, path: str) -> Iterator[ValidationIssue]:
        where = path or "root"
        if value is None:
            if not spec.nullable and "null" not in spec.accepted_types and "any" not in spec.accepted_types:
                yield ValidationIssue(field=where, expected=spec.type, observed="null")
            return
        if not type_matches(spec, value):
            yield ValidationIssue(field=where, expected=spec.type, observed=json_type_name(value), value=_preview(value))
            return
        if isinstance(value, list) and spec.items is not None:
            for index, item in enumerate(value):
                yield from self._check_value(item, spec.items, f"{path}[{index}]" if path else f"[{index}]")
        elif isinstance(value, dict) and spec.properties is not None:
            yield from self._check_object(value, spec.properties, path)

    def _check_object(self, data: Mapping[str, Any], fields: Mapping[str, FieldSpec], path: str) -> Iterator[ValidationIssue]:
        for name, spec in fields.items():
            field_path = _join(path, name)
            if name not in data:
                if spec.required:
                    yield ValidationIssue(field=field_path, expected=spec.type, observed="missing")
                continue
            yield from self._check_value(data[name], spec, field_path)


__all__ = ["StructuredOutputParser"]
