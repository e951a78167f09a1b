"""Built-in notification templates.

``default.title`` and ``default.message`` are what a notifier renders when the
user did not configure its own title/body. User templates with the same name
replace them.
"""

SUBJECT = (
    '[{{ status | upper }}'
    '{% if status == "firing" %}:{{ alerts.firing() | length }}'
    '{% if alerts.resolved() | length > 0 %}, RESOLVED:{{ alerts.resolved() | length }}{% endif %}'
    '{% endif %}] '
    '{{ group_labels.values_list() | join(" ") }}'
    '{% if common_labels | length > group_labels | length %}'
    ' ({{ common_labels.remove(group_labels.names()).values_list() | join(" ") }})'
    '{% endif %}'
)

TEXT_ALERT_LIST = """\
{% macro text_values_list(alert) -%}
{% if alert.values %}{% for ref_id, value in alert.values | dictsort %}\
{% if not loop.first %}, {% endif %}{{ ref_id }}={{ value }}{% endfor %}\
{% else %}[no value]{% endif %}
{%- endmacro %}
{% macro text_alert_list(alerts) -%}
{% for alert in alerts %}
Value: {{ text_values_list(alert) }}
Labels:
{% for pair in alert.labels.sorted_pairs() %} - {{ pair.name }} = {{ pair.value }}
{% endfor %}Annotations:
{% for pair in alert.annotations.sorted_pairs() %} - {{ pair.name }} = {{ pair.value }}
{% endfor %}{% if alert.generator_url %}Source: {{ alert.generator_url }}
{% endif %}{% if alert.silence_url %}Silence: {{ alert.silence_url }}
{% endif %}{% if alert.dashboard_url %}Dashboard: {{ alert.dashboard_url }}
{% endif %}{% if alert.panel_url %}Panel: {{ alert.panel_url }}
{% endif %}{% endfor %}
{%- endmacro %}
"""

DEFAULT_TITLE = '{% include "__subject" %}'

DEFAULT_MESSAGE = """\
{% from "__text_alert_list" import text_alert_list %}\
{% if alerts.firing() | length > 0 %}**Firing**
{{ text_alert_list(alerts.firing()) }}{% if alerts.resolved() | length > 0 %}


{% endif %}{% endif %}\
{% if alerts.resolved() | length > 0 %}**Resolved**
{{ text_alert_list(alerts.resolved()) }}{% endif %}"""

DEFAULT_TEMPLATES = {
    "__subject": SUBJECT,
    "__text_alert_list": TEXT_ALERT_LIST,
    "default.title": DEFAULT_TITLE,
    "default.message": DEFAULT_MESSAGE,
}
