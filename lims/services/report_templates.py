REPORT_HTML = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>Report {{ report_no }}</title>
<style>
  body { font-family: {{ settings.design.font_family }}, sans-serif; font-size: {{ settings.design.font_size }}px; line-height: {{ settings.design.spacing * 1.4 }}; }
  table.results { width: 100%; border-collapse: collapse; table-layout: fixed; }
  table.results th { text-align: left; border-top: 1px solid #000; border-bottom: 1px solid #000; padding: 2px 6px; }
  table.results td { padding: 2px 6px; vertical-align: top; }
  .category-title { text-align: center; font-weight: bold; margin: 12px 0 6px; }
  .category-title.nabl { text-decoration: underline; }
  .page-break { page-break-before: always; }
  .block-heading { text-align: center; font-weight: 600; background: #f5f5f5; }
  .test-heading, .group-heading { font-weight: 600; }
  .abnormal-red { color: red; }
  .value-bold { font-weight: bold; }
  .interpretation { color: #333; }
  .patient td { padding: 1px 8px 1px 0; }
</style>
</head>
<body>
<table class="patient">
  <tr><td><b>Patient</b></td><td>{{ patient.first_name }} {{ patient.last_name }}</td>
      <td><b>Reg. No</b></td><td>{{ report_no }}</td></tr>
  <tr><td><b>Age / Sex</b></td><td>{{ age_text }} {{ patient.age_unit }} / {{ patient.sex }}</td>
      <td><b>UHID</b></td><td>{{ patient.uhid or '-' }}</td></tr>
  <tr><td><b>Ref. Doctor</b></td><td>{{ patient.doctor or '-' }}</td>
      <td><b>Status</b></td><td>{{ report_status or '-' }}</td></tr>
  {% if tat_minutes is not none %}
  <tr><td><b>TAT</b></td><td>{{ tat_minutes // 60 }}h {{ tat_minutes % 60 }}m</td></tr>
  {% endif %}
</table>
{% for category in categories %}
<section class="category{% if category.page_break %} page-break{% endif %}">
  <div class="category-title{% if settings.general.use_nabl_format %} nabl{% endif %}">{{ category.title }}</div>
  <table class="results">
    <thead><tr><th style="width:40%">TEST</th><th style="width:20%">VALUE</th><th style="width:20%">UNIT</th><th style="width:20%">REFERENCE</th></tr></thead>
    <tbody>
    {% for row in category.rows %}
      {% set indent = row.depth * 12 %}
      {% if row.type == 'block_heading' %}
      <tr><td colspan="4" class="block-heading">{{ row.text }}</td></tr>
      {% elif row.type == 'test_heading' %}
      <tr><td colspan="4" class="test-heading" style="padding-left:{{ indent + 6 }}px">{{ row.text }}</td></tr>
      {% elif row.type == 'group_heading' %}
      <tr><td colspan="4" class="group-heading" style="padding-left:{{ indent + 6 }}px">{{ row.text }}</td></tr>
      {% elif row.type == 'param' %}
      <tr>
        <td style="padding-left:{{ indent + 6 }}px">{{ row.name }}</td>
        <td class="{% if row.red %}abnormal-red{% endif %} {% if row.bold %}value-bold{% endif %}">{{ row.value }}{% if row.marker %} {{ row.marker }}{% endif %}</td>
        <td>{{ row.unit }}</td>
        <td>{{ row.reference }}</td>
      </tr>
      {% elif row.type == 'interpretation' %}
      <tr><td colspan="4" class="interpretation"><strong>Interpretation:</strong> <div>{{ row.html | safe }}</div></td></tr>
      {% endif %}
    {% endfor %}
    </tbody>
  </table>
</section>
{% endfor %}
</body>
</html>
"""

TEMPLATES = {"report.html": REPORT_HTML}
