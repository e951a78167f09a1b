"""
alertnotify — Notification templates
====================================
Thin front end over a sandboxed Jinja2 environment.

Template text is rendered with these variables:

  receiver, status, external_url
  alerts              ExtendedAlerts (``alerts.firing()``, ``alerts.resolved()``)
  group_labels        KV
  common_labels       KV
  common_annotations  KV

Named templates (defaults plus user files) are reachable through
``{% include "default.title" %}`` or ``{% from "name" import macro %}``.
"""
from __future__ import annotations

import glob
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Iterable, List, Mapping, Optional, Sequence

import yaml
from jinja2 import DictLoader, TemplateError
from jinja2.sandbox import SandboxedEnvironment
from markupsafe import Markup

from .default_template import DEFAULT_TEMPLATES
from .models import STATUS_FIRING, STATUS_RESOLVED, Alert, TemplateAlert, TemplateData
from .utils.logging_utils import structured_log

if TYPE_CHECKING:
    from .template_data import ExtendedData

_logger = logging.getLogger(__name__)

_TEMPLATE_SUFFIXES = (".tmpl",)
_YAML_SUFFIXES = (".yaml", ".yml")


class TemplateExpansionError(Exception):
    """Raised when template text fails to parse or render."""


class TemplateLoadError(ValueError):
    """Raised when a template file cannot be read or has the wrong shape."""


def re_replace_all(value: str, pattern: str, repl: str) -> str:
    return re.sub(pattern, repl, str(value))


def match(value: str, pattern: str) -> bool:
    return re.search(pattern, str(value)) is not None


def _common_pairs(maps: Sequence[Mapping[str, str]]) -> Dict[str, str]:
    if not maps:
        return {}
    common = dict(maps[0])
    for other in maps[1:]:
        if not common:
            break
        common = {k: v for k, v in common.items() if other.get(k) == v}
    return common


class Template:
    def __init__(self, external_url: str = "", templates: Optional[Mapping[str, str]] = None):
        self.external_url = external_url
        sources = dict(DEFAULT_TEMPLATES)
        sources.update(templates or {})
        self._sources = sources
        self.env = SandboxedEnvironment(loader=DictLoader(sources), autoescape=False)
        self.env.filters["re_replace_all"] = re_replace_all
        self.env.filters["safe_html"] = Markup
        self.env.tests["match"] = match

    @property
    def names(self) -> List[str]:
        return sorted(self._sources)

    def execute_text_string(self, text: str, data: "ExtendedData") -> str:
        """Render ``text`` against ``data``. Empty text renders to ``""``."""
        if not text:
            return ""
        try:
            return self.env.from_string(text).render(**data.template_context())
        except TemplateError as exc:
            raise TemplateExpansionError(f"template error: {exc}") from exc
        except RecursionError as exc:
            raise TemplateExpansionError(f"template recursion too deep: {exc}") from exc
        except (re.error, TypeError, ValueError, LookupError, ArithmeticError) as exc:
            raise TemplateExpansionError(f"template execution failed: {exc}") from exc

    def execute_template(self, name: str, data: "ExtendedData") -> str:
        return self.execute_text_string('{% include "' + name.replace('"', '\\"') + '" %}', data)

    def get_template_data(
        self,
        alerts: Sequence[Alert],
        *,
        receiver: str,
        group_labels: Optional[Mapping[str, str]],
        now: Optional[datetime] = None,
        logger: Optional[logging.Logger] = None,
    ) -> TemplateData:
        """Build the data of one notification from the notifier's alerts."""
        log = logger or _logger
        if group_labels is None:
            structured_log(log, logging.WARNING, "missing_group_labels", receiver=receiver)
            group_labels = {}
        now = now or datetime.now(timezone.utc)

        template_alerts = [
            TemplateAlert(
                status=a.status(now),
                labels=dict(a.labels),
                annotations=dict(a.annotations),
                starts_at=a.starts_at,
                ends_at=a.ends_at,
                generator_url=a.generator_url,
                fingerprint=a.fingerprint(),
            )
            for a in alerts
        ]
        firing = any(a.status == STATUS_FIRING for a in template_alerts)

        return TemplateData(
            receiver=receiver,
            status=STATUS_FIRING if firing else STATUS_RESOLVED,
            alerts=template_alerts,
            group_labels=dict(group_labels),
            common_labels=_common_pairs([a.labels for a in template_alerts]),
            common_annotations=_common_pairs([a.annotations for a in template_alerts]),
            external_url=self.external_url,
        )


def _expand_paths(paths: Iterable[str]) -> List[Path]:
    out: List[Path] = []
    for raw in paths:
        matches = sorted(glob.glob(raw)) or [raw]
        for item in matches:
            p = Path(item)
            if p.is_dir():
                out.extend(sorted(
                    c for c in p.iterdir()
                    if c.is_file() and c.suffix in _TEMPLATE_SUFFIXES + _YAML_SUFFIXES
                ))
            else:
                out.append(p)
    return out


def load_templates(paths: Iterable[str]) -> Dict[str, str]:
    """Read user templates.

    ``*.tmpl`` files define one template named after the file stem; YAML files
    map template names to template text. Later files win on name clashes.
    """
    templates: Dict[str, str] = {}
    for path in _expand_paths(paths):
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise TemplateLoadError(f"cannot read template file {path}: {exc}") from exc

        if path.suffix in _YAML_SUFFIXES:
            try:
                doc = yaml.safe_load(text) or {}
            except yaml.YAMLError as exc:
                raise TemplateLoadError(f"invalid YAML in {path}: {exc}") from exc
            if not isinstance(doc, dict) or not all(
                isinstance(k, str) and isinstance(v, str) for k, v in doc.items()
            ):
                raise TemplateLoadError(f"{path} must map template names to template text")
            templates.update(doc)
        else:
            templates[path.stem] = text
        _logger.debug("Loaded templates from %s", path)
    return templates


def build_template(external_url: Optional[str] = None) -> Template:
    """Template configured from settings (external URL and template paths)."""
    from .config import settings
    return Template(
        external_url if external_url is not None else settings.external_url,
        load_templates(settings.template_path_list),
    )
