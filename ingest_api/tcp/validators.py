"""Pipeline de validación de lecturas recibidas por TCP.

Formato esperado (una línea JSON):
{"id": "M001", "type": "onoff", "value": 1}

Stages run in a fixed order and the first failure wins:

1. parse JSON object
2. required fields (id, type, value)
3. type in {onoff, counter, current}
4. machine exists in the registry
5. machine type matches the submitted type
6. value is valid for the type
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Optional, Sequence

import orjson

from machine_metrics.models import MachineProfile, MachineType

logger = logging.getLogger(__name__)


class IngestErrorCode(str, Enum):
    MALFORMED_INPUT = "malformed_input"
    MISSING_FIELDS = "missing_fields"
    INVALID_TYPE = "invalid_type"
    MACHINE_NOT_FOUND = "machine_not_found"
    TYPE_MISMATCH = "type_mismatch"
    INVALID_VALUE = "invalid_value"
    SAVE_FAILED = "save_failed"
    PROCESSING_ERROR = "processing_error"
    PROTOCOL_VIOLATION = "protocol_violation"


@dataclass(frozen=True)
class IngestError:
    code: IngestErrorCode
    message: str
    detail: Optional[str] = None


@dataclass(frozen=True)
class MessageContext:
    """Lo que se va sabiendo del mensaje a medida que avanza el pipeline."""

    raw: bytes
    data: Optional[dict[str, Any]] = None
    machine_id: Optional[str] = None
    machine_type: Optional[MachineType] = None
    profile: Optional[MachineProfile] = None
    value: Optional[float] = None


@dataclass(frozen=True)
class ValidationResult:
    """Resultado de validación."""

    valid: bool
    context: MessageContext
    error: Optional[IngestError] = None

    @classmethod
    def ok(cls, context: MessageContext) -> "ValidationResult":
        return cls(valid=True, context=context)

    @classmethod
    def fail(
        cls,
        context: MessageContext,
        code: IngestErrorCode,
        message: str,
        detail: Optional[str] = None,
    ) -> "ValidationResult":
        return cls(valid=False, context=context, error=IngestError(code, message, detail))


Stage = Callable[[MessageContext], ValidationResult]
MachineLookup = Callable[[str], Optional[MachineProfile]]


def _is_number(value: Any) -> bool:
    # JSON true/false are not 1/0 here
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_json(ctx: MessageContext) -> ValidationResult:
    try:
        data = orjson.loads(ctx.raw)
    except orjson.JSONDecodeError as e:
        return ValidationResult.fail(
            ctx, IngestErrorCode.MALFORMED_INPUT, "Invalid JSON format", str(e)
        )

    if not isinstance(data, dict):
        return ValidationResult.fail(
            ctx, IngestErrorCode.MALFORMED_INPUT, "Invalid JSON format", "expected a JSON object"
        )

    return ValidationResult.ok(replace(ctx, data=data))


def require_fields(ctx: MessageContext) -> ValidationResult:
    data = ctx.data or {}
    # value may be 0 but must be present
    if not data.get("id") or not data.get("type") or "value" not in data:
        return ValidationResult.fail(
            ctx, IngestErrorCode.MISSING_FIELDS, "Missing required fields: id, type, value"
        )
    return ValidationResult.ok(replace(ctx, machine_id=str(data["id"])))


def check_type(ctx: MessageContext) -> ValidationResult:
    submitted = ctx.data["type"]
    if not isinstance(submitted, str) or submitted not in MachineType.values():
        return ValidationResult.fail(
            ctx,
            IngestErrorCode.INVALID_TYPE,
            "Invalid type. Must be: onoff, counter, or current",
        )
    return ValidationResult.ok(replace(ctx, machine_type=MachineType(submitted)))


def machine_resolver(lookup: MachineLookup) -> Stage:
    def resolve_machine(ctx: MessageContext) -> ValidationResult:
        profile = lookup(ctx.machine_id)
        if profile is None:
            return ValidationResult.fail(
                ctx,
                IngestErrorCode.MACHINE_NOT_FOUND,
                f"Machine {ctx.machine_id} not found in database",
            )
        return ValidationResult.ok(replace(ctx, profile=profile))

    return resolve_machine


def check_type_match(ctx: MessageContext) -> ValidationResult:
    expected = ctx.profile.machine_type
    if expected is not ctx.machine_type:
        return ValidationResult.fail(
            ctx,
            IngestErrorCode.TYPE_MISMATCH,
            f"Machine type mismatch. Expected {expected.value}, got {ctx.machine_type.value}",
        )
    return ValidationResult.ok(ctx)


def check_value(ctx: MessageContext) -> ValidationResult:
    value = ctx.data["value"]
    machine_type = ctx.machine_type

    if machine_type is MachineType.ONOFF:
        if not (_is_number(value) and value in (0, 1)):
            return ValidationResult.fail(
                ctx, IngestErrorCode.INVALID_VALUE, "For onoff type, value must be 0 or 1"
            )
        return ValidationResult.ok(replace(ctx, value=int(value)))

    if machine_type is MachineType.COUNTER:
        if not (_is_number(value) and float(value).is_integer() and value >= 0):
            return ValidationResult.fail(
                ctx,
                IngestErrorCode.INVALID_VALUE,
                "For counter type, value must be a positive integer",
            )
        return ValidationResult.ok(replace(ctx, value=int(value)))

    if not (_is_number(value) and value >= 0):
        return ValidationResult.fail(
            ctx, IngestErrorCode.INVALID_VALUE, "For current type, value must be a positive number"
        )
    return ValidationResult.ok(replace(ctx, value=float(value)))


class ReadingValidationPipeline:
    """Secuencia explícita de stages; corta en el primer fallo."""

    def __init__(self, lookup: MachineLookup):
        self.stages: Sequence[Stage] = (
            parse_json,
            require_fields,
            check_type,
            machine_resolver(lookup),
            check_type_match,
            check_value,
        )

    def validate(self, raw: bytes) -> ValidationResult:
        result = ValidationResult.ok(MessageContext(raw=raw))
        for stage in self.stages:
            result = stage(result.context)
            if not result.valid:
                logger.warning(
                    "[TCP_VALIDATOR] Validation failed: code=%s message=%s",
                    result.error.code.value,
                    result.error.message,
                )
                return result
        return result
