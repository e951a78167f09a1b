"""
alertnotify — Extended template data
====================================
Enriches the alerts of a notification before they reach the templates:

  * private labels/annotations (``__name__``) are stripped
  * dashboard / panel links are derived from ``__dashboardUid__`` and
    ``__panelId__``, with ``orgId`` set from ``__orgId__``
  * a silence link pre-filled with one matcher per label is built
  * the ``__values__`` annotation is decoded into a numeric map

Parse failures never abort the transform: they are logged on the injected
logger and the affected field stays empty.
"""
from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
from urllib.parse import SplitResult, quote

from .kv import KV, is_private_key, remove_private_items
from .models import (
    DASHBOARD_UID_ANNOTATION,
    ORG_ID_ANNOTATION,
    PANEL_ID_ANNOTATION,
    STATUS_FIRING,
    STATUS_RESOLVED,
    VALUE_STRING_ANNOTATION,
    VALUES_ANNOTATION,
    Alert,
    TemplateAlert,
    TemplateData,
    format_time,
)
from .template import Template, TemplateExpansionError
from .urls import encode_query, join_path, parse_query, parse_url, url_string
from .utils.logging_utils import structured_log

_logger = logging.getLogger(__name__)

SILENCE_PATH = "/alerting/silence/new"


@dataclass
class ExtendedAlert:
    status: str
    labels: KV
    annotations: KV
    starts_at: Optional[datetime]
    ends_at: Optional[datetime]
    generator_url: str
    fingerprint: str
    silence_url: str = ""
    dashboard_url: str = ""
    panel_url: str = ""
    values: Dict[str, float] = field(default_factory=dict)
    value_string: str = ""
    image_url: str = ""
    embedded_image: str = ""

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "status": self.status,
            "labels": dict(self.labels),
            "annotations": dict(self.annotations),
            "startsAt": format_time(self.starts_at),
            "endsAt": format_time(self.ends_at),
            "generatorURL": self.generator_url,
            "fingerprint": self.fingerprint,
            "silenceURL": self.silence_url,
            "dashboardURL": self.dashboard_url,
            "panelURL": self.panel_url,
            "values": dict(self.values),
            "valueString": self.value_string,
        }
        if self.image_url:
            out["imageURL"] = self.image_url
        if self.embedded_image:
            out["embeddedImage"] = self.embedded_image
        return out


class ExtendedAlerts(list):
    def firing(self) -> List[ExtendedAlert]:
        """Return the subset of alerts that are firing."""
        return [a for a in self if a.status == STATUS_FIRING]

    def resolved(self) -> List[ExtendedAlert]:
        """Return the subset of alerts that are resolved."""
        return [a for a in self if a.status == STATUS_RESOLVED]


@dataclass
class ExtendedData:
    receiver: str
    status: str
    alerts: ExtendedAlerts
    group_labels: KV
    common_labels: KV
    common_annotations: KV
    external_url: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "receiver": self.receiver,
            "status": self.status,
            "alerts": [a.to_dict() for a in self.alerts],
            "groupLabels": dict(self.group_labels),
            "commonLabels": dict(self.common_labels),
            "commonAnnotations": dict(self.common_annotations),
            "externalURL": self.external_url,
        }

    def template_context(self) -> Dict[str, Any]:
        return {
            "receiver": self.receiver,
            "status": self.status,
            "alerts": self.alerts,
            "group_labels": self.group_labels,
            "common_labels": self.common_labels,
            "common_annotations": self.common_annotations,
            "external_url": self.external_url,
        }


def _reject_constant(name: str) -> float:
    raise ValueError(f"non-finite number {name} is not valid JSON")


def _decode_values(raw: str, log: logging.Logger) -> Dict[str, float]:
    try:
        decoded = json.loads(raw, parse_constant=_reject_constant)
    except ValueError as exc:
        structured_log(log, logging.WARNING, "values_annotation_unmarshal_failed", error=str(exc))
        return {}
    if not isinstance(decoded, dict):
        structured_log(log, logging.WARNING, "values_annotation_unmarshal_failed",
                       error=f"expected a JSON object, got {type(decoded).__name__}")
        return {}
    values: Dict[str, float] = {}
    for ref_id, value in decoded.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            structured_log(log, logging.WARNING, "values_annotation_unmarshal_failed",
                           error=f"value for {ref_id!r} is not a number")
            return {}
        try:
            number = float(value)
        except OverflowError:
            number = math.inf
        # 1e400 parses to inf; out of range numbers are malformed
        if not math.isfinite(number):
            structured_log(log, logging.WARNING, "values_annotation_unmarshal_failed",
                           error=f"value for {ref_id!r} is out of range")
            return {}
        values[ref_id] = number
    return values


def set_org_id_query_param(url: Union[str, SplitResult], org_id: str) -> str:
    """Return ``url`` with its ``orgId`` query parameter set to ``org_id``."""
    parts = parse_url(url) if isinstance(url, str) else url
    query = parse_query(parts.query)
    query["orgId"] = [org_id]
    return url_string(parts._replace(query=encode_query(query)))


def _silence_matchers(labels: Dict[str, str]) -> List[str]:
    return sorted(f"{k}={v}" for k, v in labels.items() if not is_private_key(k))


def extend_alert(alert: TemplateAlert, external_url: str, logger: Optional[logging.Logger] = None) -> ExtendedAlert:
    log = logger or _logger
    annotations = alert.annotations or {}

    extended = ExtendedAlert(
        status=alert.status,
        labels=remove_private_items(alert.labels),
        annotations=remove_private_items(annotations),
        starts_at=alert.starts_at,
        ends_at=alert.ends_at,
        generator_url=alert.generator_url,
        fingerprint=alert.fingerprint,
    )

    if VALUES_ANNOTATION in annotations:
        extended.values = _decode_values(annotations[VALUES_ANNOTATION], log)
    extended.value_string = annotations.get(VALUE_STRING_ANNOTATION, "")

    if not external_url:
        return extended
    try:
        base = parse_url(external_url)
    except ValueError as exc:
        structured_log(log, logging.DEBUG, "external_url_parse_failed", url=external_url, error=str(exc))
        return extended
    external_path = base.path

    dashboard_uid = annotations.get(DASHBOARD_UID_ANNOTATION, "")
    if dashboard_uid:
        dashboard = base._replace(path=join_path(external_path, "/d/", quote(dashboard_uid, safe="/")))
        extended.dashboard_url = url_string(dashboard)

        panel = None
        panel_id = annotations.get(PANEL_ID_ANNOTATION, "")
        if panel_id:
            panel = dashboard._replace(query=encode_query({"viewPanel": [panel_id]}))
            extended.panel_url = url_string(panel)

        org_id = annotations.get(ORG_ID_ANNOTATION, "")
        if org_id:
            extended.dashboard_url = set_org_id_query_param(dashboard, org_id)
            if panel is not None:
                extended.panel_url = set_org_id_query_param(panel, org_id)
            try:
                generator = parse_url(extended.generator_url)
            except ValueError as exc:
                structured_log(log, logging.DEBUG, "generator_url_parse_failed",
                               url=extended.generator_url, error=str(exc))
            else:
                extended.generator_url = set_org_id_query_param(generator, org_id)

    silence_query = {
        "alertmanager": ["grafana"],
        "matcher": _silence_matchers(alert.labels or {}),
    }
    silence = base._replace(path=join_path(external_path, SILENCE_PATH), query=encode_query(silence_query))
    extended.silence_url = url_string(silence)

    return extended


def extend_data(data: TemplateData, logger: Optional[logging.Logger] = None) -> ExtendedData:
    alerts = ExtendedAlerts(extend_alert(a, data.external_url, logger) for a in data.alerts)
    return ExtendedData(
        receiver=data.receiver,
        status=data.status,
        alerts=alerts,
        group_labels=remove_private_items(data.group_labels),
        common_labels=remove_private_items(data.common_labels),
        common_annotations=remove_private_items(data.common_annotations),
        external_url=data.external_url,
    )


class TemplateExpander:
    """Renders template text against one notification's extended data.

    The first rendering error is kept in ``error``; every later call then
    returns an empty string without rendering.
    """

    def __init__(self, tmpl: Template, data: ExtendedData):
        self.tmpl = tmpl
        self.data = data
        self.error: Optional[Exception] = None

    def __call__(self, text: str) -> str:
        if self.error is not None:
            return ""
        try:
            return self.tmpl.execute_text_string(text, self.data)
        except TemplateExpansionError as exc:
            self.error = exc
            return ""


def tmpl_text(
    tmpl: Template,
    alerts: Sequence[Alert],
    *,
    receiver: str,
    group_labels: Optional[Dict[str, str]],
    logger: Optional[logging.Logger] = None,
) -> Tuple[TemplateExpander, ExtendedData]:
    data = extend_data(
        tmpl.get_template_data(alerts, receiver=receiver, group_labels=group_labels, logger=logger),
        logger,
    )
    return TemplateExpander(tmpl, data), data
