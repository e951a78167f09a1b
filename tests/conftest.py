from __future__ import annotations

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from alertnotify.config import settings
from alertnotify.main import app
from alertnotify.models import TemplateAlert


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


@pytest.fixture(autouse=True)
def restore_settings():
    tracked = {
        'api_key': settings.api_key,
        'app_env': settings.app_env,
        'expose_internal_error_details': settings.expose_internal_error_details,
        'external_url': settings.external_url,
        'template_paths': settings.template_paths,
    }
    yield settings
    for key, value in tracked.items():
        setattr(settings, key, value)


@pytest.fixture
def make_alert():
    def _make(labels=None, annotations=None, **kwargs) -> TemplateAlert:
        fields = {
            'status': 'firing',
            'labels': {'alertname': 'HighCPU', 'instance': 'host1'} if labels is None else labels,
            'annotations': annotations or {},
            'starts_at': datetime(2026, 2, 27, 12, 0, tzinfo=timezone.utc),
            'generator_url': 'http://localhost:3000/alerting/grafana/rule-1/view',
            'fingerprint': 'abc123',
        }
        fields.update(kwargs)
        return TemplateAlert(**fields)
    return _make
