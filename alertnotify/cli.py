"""
alertnotify — Command line
==========================
  alertnotify extend PAYLOAD            print the extended template data
  alertnotify render PAYLOAD --text T   render template text against a payload

PAYLOAD is a JSON webhook payload file, or - for stdin. Errors exit with 2.
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, List, Optional

from .config import settings
from .models import parse_template_data
from .template import Template, load_templates
from .template_data import TemplateExpander, extend_data
from .utils.logging_utils import configure_logging


def _read_payload(path: str) -> Any:
    if path == "-":
        return json.load(sys.stdin)
    return json.loads(Path(path).read_text(encoding="utf-8"))


def _cmd_extend(args: argparse.Namespace) -> int:
    data = parse_template_data(_read_payload(args.payload))
    if not data.external_url:
        data.external_url = args.external_url or settings.external_url
    print(json.dumps(extend_data(data).to_dict(), indent=2, ensure_ascii=False))
    return 0


def _cmd_render(args: argparse.Namespace) -> int:
    data = parse_template_data(_read_payload(args.payload))
    if not data.external_url:
        data.external_url = args.external_url or settings.external_url
    template_files = args.template_file or settings.template_path_list
    tmpl = Template(data.external_url, load_templates(template_files))
    expand = TemplateExpander(tmpl, extend_data(data))
    out = expand(args.text)
    if expand.error is not None:
        print(f"error: {expand.error}", file=sys.stderr)
        return 2
    print(out)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser(prog="alertnotify", description="Alert notification template data")
    p.add_argument("--log-level", default=None, help="override LOG_LEVEL")
    sub = p.add_subparsers(dest="command", required=True)

    ext = sub.add_parser("extend", help="print the extended template data of a webhook payload")
    ext.add_argument("payload", help="path to a JSON webhook payload, or - for stdin")
    ext.add_argument("--external-url", default=None, help="base URL when the payload has none")
    ext.set_defaults(func=_cmd_extend)

    ren = sub.add_parser("render", help="render template text against a webhook payload")
    ren.add_argument("payload", help="path to a JSON webhook payload, or - for stdin")
    ren.add_argument("--text", default='{% include "default.message" %}', help="template text to render")
    ren.add_argument("--template-file", action="append", default=None, help="*.tmpl / *.yaml file (repeatable)")
    ren.add_argument("--external-url", default=None, help="base URL when the payload has none")
    ren.set_defaults(func=_cmd_render)

    args = p.parse_args(argv)
    configure_logging(args.log_level or settings.log_level)

    try:
        return args.func(args)
    except (OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
