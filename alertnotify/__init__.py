"""
alertnotify
===========
Extends alert notification data with dashboard, panel and silence links,
strips private labels and renders notification templates.
"""
from .kv import KV, is_private_key, remove_private_items
from .models import Alert, PayloadValidationError, TemplateAlert, TemplateData
from .template import Template, TemplateExpansionError
from .template_data import (
    ExtendedAlert,
    ExtendedAlerts,
    ExtendedData,
    TemplateExpander,
    extend_alert,
    extend_data,
    set_org_id_query_param,
    tmpl_text,
)

__all__ = [
    "KV",
    "Alert",
    "ExtendedAlert",
    "ExtendedAlerts",
    "ExtendedData",
    "PayloadValidationError",
    "Template",
    "TemplateAlert",
    "TemplateData",
    "TemplateExpander",
    "TemplateExpansionError",
    "extend_alert",
    "extend_data",
    "is_private_key",
    "remove_private_items",
    "set_org_id_query_param",
    "tmpl_text",
]
