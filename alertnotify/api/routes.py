"""
alertnotify — API routes
========================
  POST /v1/alerts/extend   webhook payload  -> extended template data
  POST /v1/alerts/render   raw alerts + template text -> rendered text
  GET  /v1/templates       names of the loaded templates
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel, ConfigDict, Field

from ..config import settings
from ..models import Alert, PayloadValidationError, parse_template_data
from ..template import TemplateLoadError, build_template
from ..template_data import extend_data, tmpl_text
from ..utils.api_errors import bad_request, template_expansion_failed, template_load_failed
from ..utils.logging_utils import receiver_context, structured_log

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_RENDER_TEMPLATES = {
    "title": '{% include "default.title" %}',
    "message": '{% include "default.message" %}',
}


class RenderReq(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    receiver: str = ""
    group_labels: Optional[Dict[str, str]] = Field(default=None, alias="groupLabels")
    alerts: List[Alert] = Field(default_factory=list)
    templates: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_RENDER_TEMPLATES))
    external_url: Optional[str] = Field(default=None, alias="externalURL")


def _load_template(external_url: Optional[str]):
    try:
        return build_template(external_url)
    except TemplateLoadError as exc:
        structured_log(logger, logging.ERROR, "template_load_failed", error=str(exc))
        raise template_load_failed(exc)


@router.post("/alerts/extend", tags=["alerts"])
async def alerts_extend(request: Request):
    """Extend an Alertmanager-style webhook payload with links and values."""
    try:
        payload = await request.json()
    except ValueError as exc:
        raise bad_request("INVALID_JSON", "Request body is not valid JSON", {"reason": str(exc)})

    try:
        data = parse_template_data(payload)
    except PayloadValidationError as exc:
        raise bad_request("INVALID_PAYLOAD", str(exc))

    if not data.external_url:
        data.external_url = settings.external_url

    with receiver_context(data.receiver):
        extended = extend_data(data)
        structured_log(logger, logging.INFO, "alerts_extended", alerts=len(extended.alerts), status=extended.status)
        return extended.to_dict()


@router.post("/alerts/render", tags=["alerts"])
async def alerts_render(req: RenderReq):
    """Render template text for a group of alerts."""
    tmpl = _load_template(req.external_url)

    with receiver_context(req.receiver):
        expand, data = tmpl_text(tmpl, req.alerts, receiver=req.receiver, group_labels=req.group_labels)
        rendered = {name: expand(text) for name, text in req.templates.items()}
        if expand.error is not None:
            structured_log(logger, logging.WARNING, "template_expansion_failed", error=str(expand.error))
            raise template_expansion_failed(expand.error)
        return {"rendered": rendered, "data": data.to_dict()}


@router.get("/templates", tags=["templates"])
async def templates_list():
    """List the names of the built-in and user templates."""
    tmpl = _load_template(None)
    return {"templates": tmpl.names}
