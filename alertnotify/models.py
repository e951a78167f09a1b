"""
alertnotify — Alert models
==========================
Incoming shapes, as Alertmanager-style webhook JSON (camelCase) or built in
code (snake_case):

  Alert         an alert held by the notifier, before templating
  TemplateAlert an alert as exposed to templates (status + fingerprint fixed)
  TemplateData  one notification: receiver, grouped alerts, common labels
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

# Annotations written by the rule evaluator. All private (see kv.is_private_key).
DASHBOARD_UID_ANNOTATION = "__dashboardUid__"
PANEL_ID_ANNOTATION = "__panelId__"
ORG_ID_ANNOTATION = "__orgId__"
VALUES_ANNOTATION = "__values__"
VALUE_STRING_ANNOTATION = "__value_string__"

STATUS_FIRING = "firing"
STATUS_RESOLVED = "resolved"

ZERO_TIME = "0001-01-01T00:00:00Z"

# FNV-1a, 64 bit
_FNV_OFFSET64 = 14695981039346656037
_FNV_PRIME64 = 1099511628211
_MASK64 = 0xFFFFFFFFFFFFFFFF
_SEPARATOR_BYTE = 0xFF


class PayloadValidationError(ValueError):
    """Raised when an incoming alert payload is invalid."""


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _zero_time_to_none(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.year <= 1:
        return None
    return _as_utc(value)


def format_time(value: Optional[datetime]) -> str:
    if value is None:
        return ZERO_TIME
    return _as_utc(value).isoformat().replace("+00:00", "Z")


def _fnv_add(h: int, data: bytes) -> int:
    for b in data:
        h ^= b
        h = (h * _FNV_PRIME64) & _MASK64
    return h


def label_fingerprint(labels: Dict[str, str]) -> str:
    h = _FNV_OFFSET64
    for name in sorted(labels):
        h = _fnv_add(h, name.encode("utf-8"))
        h = _fnv_add(h, bytes([_SEPARATOR_BYTE]))
        h = _fnv_add(h, labels[name].encode("utf-8"))
        h = _fnv_add(h, bytes([_SEPARATOR_BYTE]))
    return f"{h:016x}"


class _AlertBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    labels: Dict[str, str] = Field(default_factory=dict)
    annotations: Dict[str, str] = Field(default_factory=dict)
    starts_at: Optional[datetime] = Field(default=None, alias="startsAt")
    ends_at: Optional[datetime] = Field(default=None, alias="endsAt")
    generator_url: str = Field(default="", alias="generatorURL")

    @field_validator("labels", "annotations", mode="before")
    @classmethod
    def none_is_empty(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator("starts_at", "ends_at", mode="after")
    @classmethod
    def normalize_time(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _zero_time_to_none(v)


class Alert(_AlertBase):
    def resolved(self, now: Optional[datetime] = None) -> bool:
        if self.ends_at is None:
            return False
        now = _as_utc(now or datetime.now(timezone.utc))
        return not self.ends_at > now

    def status(self, now: Optional[datetime] = None) -> str:
        return STATUS_RESOLVED if self.resolved(now) else STATUS_FIRING

    def fingerprint(self) -> str:
        return label_fingerprint(self.labels)


class TemplateAlert(_AlertBase):
    status: str = STATUS_FIRING
    fingerprint: str = ""


class TemplateData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    receiver: str = ""
    status: str = ""
    alerts: List[TemplateAlert] = Field(default_factory=list)
    group_labels: Dict[str, str] = Field(default_factory=dict, alias="groupLabels")
    common_labels: Dict[str, str] = Field(default_factory=dict, alias="commonLabels")
    common_annotations: Dict[str, str] = Field(default_factory=dict, alias="commonAnnotations")
    external_url: str = Field(default="", alias="externalURL")

    @field_validator("group_labels", "common_labels", "common_annotations", mode="before")
    @classmethod
    def none_is_empty(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator("receiver", "status", "external_url", mode="before")
    @classmethod
    def none_is_blank(cls, v: Any) -> Any:
        return "" if v is None else v


def validate_alert_payload(payload: Any) -> None:
    if not isinstance(payload, dict):
        raise PayloadValidationError("payload must be a JSON object")
    alerts = payload.get("alerts")
    if alerts is None:
        raise PayloadValidationError("payload.alerts is required")
    if not isinstance(alerts, list):
        raise PayloadValidationError("payload.alerts must be a list")
    for i, alert in enumerate(alerts):
        if not isinstance(alert, dict):
            raise PayloadValidationError(f"payload.alerts[{i}] must be an object")


def parse_template_data(payload: Any) -> TemplateData:
    validate_alert_payload(payload)
    try:
        return TemplateData.model_validate(payload)
    except ValidationError as exc:
        first = exc.errors()[0] if exc.errors() else {}
        where = ".".join(str(p) for p in first.get("loc", ()))
        raise PayloadValidationError(f"payload.{where}: {first.get('msg', 'invalid value')}") from exc
