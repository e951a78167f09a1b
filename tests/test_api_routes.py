from __future__ import annotations

from alertnotify.config import settings

WEBHOOK_PAYLOAD = {
    'receiver': 'ops-webhook',
    'status': 'firing',
    'groupLabels': {'alertname': 'HighCPU'},
    'commonLabels': {'alertname': 'HighCPU', '__alert_rule_uid__': 'rule-1'},
    'commonAnnotations': {'summary': 'CPU high'},
    'alerts': [
        {
            'status': 'firing',
            'labels': {'alertname': 'HighCPU', 'instance': 'host1', '__alert_rule_uid__': 'rule-1'},
            'annotations': {
                'summary': 'CPU high',
                '__dashboardUid__': 'abc',
                '__panelId__': '4',
                '__orgId__': '2',
                '__values__': '{"B": 97.5}',
            },
            'startsAt': '2026-02-27T12:00:00Z',
            'endsAt': '0001-01-01T00:00:00Z',
            'generatorURL': 'http://grafana.local/alerting/grafana/rule-1/view',
            'fingerprint': 'abc123',
        }
    ],
}

RENDER_REQUEST = {
    'receiver': 'ops-webhook',
    'groupLabels': {'alertname': 'HighCPU'},
    'alerts': [
        {
            'labels': {'alertname': 'HighCPU', 'instance': 'host1'},
            'annotations': {'summary': 'CPU high'},
            'startsAt': '2026-02-27T12:00:00Z',
        }
    ],
}


def test_extend_uses_configured_external_url(client):
    settings.external_url = 'http://grafana.local/'

    resp = client.post('/v1/alerts/extend', json=WEBHOOK_PAYLOAD)

    assert resp.status_code == 200
    body = resp.json()
    alert = body['alerts'][0]
    assert body['externalURL'] == 'http://grafana.local/'
    assert body['commonLabels'] == {'alertname': 'HighCPU'}
    assert alert['dashboardURL'] == 'http://grafana.local/d/abc?orgId=2'
    assert alert['panelURL'] == 'http://grafana.local/d/abc?orgId=2&viewPanel=4'
    assert alert['generatorURL'] == 'http://grafana.local/alerting/grafana/rule-1/view?orgId=2'
    assert alert['silenceURL'] == (
        'http://grafana.local/alerting/silence/new'
        '?alertmanager=grafana&matcher=alertname%3DHighCPU&matcher=instance%3Dhost1'
    )
    assert alert['values'] == {'B': 97.5}
    assert alert['labels'] == {'alertname': 'HighCPU', 'instance': 'host1'}
    assert alert['annotations'] == {'summary': 'CPU high'}


def test_extend_prefers_payload_external_url(client):
    payload = dict(WEBHOOK_PAYLOAD, externalURL='https://grafana.example.com/sub')

    resp = client.post('/v1/alerts/extend', json=payload)

    assert resp.status_code == 200
    assert resp.json()['alerts'][0]['dashboardURL'] == 'https://grafana.example.com/sub/d/abc?orgId=2'


def test_extend_rejects_invalid_payload(client):
    resp = client.post('/v1/alerts/extend', json={'receiver': 'x'})
    assert resp.status_code == 400
    detail = resp.json()['detail']
    assert detail['code'] == 'INVALID_PAYLOAD'
    assert 'payload.alerts is required' in detail['message']


def test_extend_rejects_invalid_json(client):
    resp = client.post('/v1/alerts/extend', content=b'{not json', headers={'content-type': 'application/json'})
    assert resp.status_code == 400
    assert resp.json()['detail']['code'] == 'INVALID_JSON'


def test_render_default_templates(client):
    settings.external_url = 'http://grafana.local/'

    resp = client.post('/v1/alerts/render', json=RENDER_REQUEST)

    assert resp.status_code == 200
    body = resp.json()
    assert body['rendered']['title'] == '[FIRING:1] HighCPU (host1)'
    assert body['rendered']['message'].startswith('**Firing**')
    assert body['data']['receiver'] == 'ops-webhook'
    assert body['data']['alerts'][0]['silenceURL'].startswith('http://grafana.local/alerting/silence/new')


def test_render_custom_template_text(client):
    req = dict(RENDER_REQUEST, templates={'summary': '{{ alerts | length }} alert(s) for {{ receiver }}'})

    resp = client.post('/v1/alerts/render', json=req)

    assert resp.status_code == 200
    assert resp.json()['rendered'] == {'summary': '1 alert(s) for ops-webhook'}


def test_render_template_error_returns_422(client):
    req = dict(RENDER_REQUEST, templates={'broken': '{% if %}'})

    resp = client.post('/v1/alerts/render', json=req)

    assert resp.status_code == 422
    assert resp.json()['detail']['code'] == 'TEMPLATE_EXPANSION_FAILED'


def test_extend_with_non_finite_values_returns_empty_map(client):
    alert = dict(WEBHOOK_PAYLOAD['alerts'][0])
    alert['annotations'] = dict(alert['annotations'], __values__='{"A": NaN, "B": 1e400}')
    payload = dict(WEBHOOK_PAYLOAD, alerts=[alert], externalURL='http://grafana.local/')

    resp = client.post('/v1/alerts/extend', json=payload)

    assert resp.status_code == 200
    assert resp.json()['alerts'][0]['values'] == {}
    assert resp.json()['alerts'][0]['dashboardURL'] == 'http://grafana.local/d/abc?orgId=2'


def test_render_invalid_regex_returns_422(client):
    req = dict(RENDER_REQUEST, templates={'broken': '{{ "abc" | re_replace_all("(", "x") }}'})

    resp = client.post('/v1/alerts/render', json=req)

    assert resp.status_code == 422
    assert resp.json()['detail']['code'] == 'TEMPLATE_EXPANSION_FAILED'


def test_render_self_including_template_returns_422(client, tmp_path):
    (tmp_path / 'loop.tmpl').write_text('{% include "loop" %}', encoding='utf-8')
    settings.template_paths = str(tmp_path)
    req = dict(RENDER_REQUEST, templates={'body': '{% include "loop" %}'})

    resp = client.post('/v1/alerts/render', json=req)

    assert resp.status_code == 422
    assert resp.json()['detail']['code'] == 'TEMPLATE_EXPANSION_FAILED'


def test_render_validation_error_shape(client):
    resp = client.post('/v1/alerts/render', json={'alerts': 'nope'})
    assert resp.status_code == 422
    assert resp.json()['detail']['code'] == 'REQUEST_VALIDATION_FAILED'


def test_render_with_unreadable_template_paths(client, tmp_path):
    settings.template_paths = str(tmp_path / 'missing.tmpl')

    resp = client.post('/v1/alerts/render', json=RENDER_REQUEST)

    assert resp.status_code == 500
    assert resp.json()['detail']['code'] == 'TEMPLATE_LOAD_FAILED'


def test_templates_list_includes_user_templates(client, tmp_path):
    (tmp_path / 'team.footer.tmpl').write_text('by {{ receiver }}', encoding='utf-8')
    settings.template_paths = str(tmp_path)

    resp = client.get('/v1/templates')

    assert resp.status_code == 200
    names = resp.json()['templates']
    assert 'default.title' in names
    assert 'team.footer' in names


def test_api_key_required_when_configured(client):
    settings.api_key = 'secret'

    assert client.post('/v1/alerts/extend', json=WEBHOOK_PAYLOAD).status_code == 401
    assert client.get('/healthz').status_code == 200
    resp = client.post('/v1/alerts/extend', json=WEBHOOK_PAYLOAD, headers={'x-api-key': 'secret'})
    assert resp.status_code == 200
    resp = client.get('/v1/templates', headers={'authorization': 'Bearer secret'})
    assert resp.status_code == 200


def test_request_id_is_echoed(client):
    resp = client.get('/healthz', headers={'x-request-id': 'req-42'})
    assert resp.status_code == 200
    assert resp.headers['x-request-id'] == 'req-42'
    assert resp.json()['status'] == 'ok'
