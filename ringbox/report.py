"""Session report - standalone HTML rendering of the session store"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

from jinja2 import Template

from .exceptions import FileOperationError
from .logger import logger
from .version import __version__

log = logger.get_logger("report")


class SessionReport:
    """Render the session host store into a single HTML document"""

    HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>Ringbox Session Report</title>
    <style>
        body { font-family: -apple-system, 'Segoe UI', Roboto, sans-serif; background: #10141f; color: #e0e0e0; margin: 0; }
        .container { max-width: 1100px; margin: 0 auto; padding: 24px; }
        header { border-bottom: 1px solid #333; margin-bottom: 24px; }
        h1 { color: #4fc3f7; }
        .meta { color: #888; }
        h2 { color: #fff; border-left: 3px solid #4fc3f7; padding-left: 10px; }
        h3 { color: #b0bec5; }
        table { width: 100%; border-collapse: collapse; margin-bottom: 16px; }
        th, td { text-align: left; padding: 6px 10px; border-bottom: 1px solid #2a2f3d; vertical-align: top; }
        pre { background: #1a1f2e; padding: 12px; border-radius: 6px; overflow-x: auto; white-space: pre-wrap; }
        .empty { color: #888; font-style: italic; }
    </style>
</head>
<body>
<div class="container">
    <header>
        <h1>Ringbox Session Report</h1>
        <p class="meta">Generated {{ timestamp }} &middot; Ringbox v{{ version }}</p>
    </header>
    {% if hosts %}
    {% for host, modules in hosts.items() %}
    <section>
        <h2>{{ host | e }}</h2>
        {% if modules is mapping %}
        {% for module, runs in modules.items() %}
        <h3>{{ module | e }}</h3>
        <table>
            <tr><th>Time</th><th>Result</th></tr>
            {% if runs is iterable and runs is not string %}
            {% for run in runs %}
            <tr>
                <td>{{ run.timestamp if run is mapping else '' }}</td>
                <td><pre>{{ (run.result if run is mapping else run) | tojson(indent=2) | e }}</pre></td>
            </tr>
            {% endfor %}
            {% else %}
            <tr><td></td><td><pre>{{ runs | tojson(indent=2) | e }}</pre></td></tr>
            {% endif %}
        </table>
        {% endfor %}
        {% else %}
        <pre>{{ modules | tojson(indent=2) | e }}</pre>
        {% endif %}
    </section>
    {% endfor %}
    {% else %}
    <p class="empty">The session is empty.</p>
    {% endif %}
    <h2>Raw session</h2>
    <pre id="raw-report">{{ report | e }}</pre>
</div>
</body>
</html>
"""

    def __init__(self, hosts: Dict[str, Any]):
        self.hosts = hosts
        self.timestamp = datetime.now().strftime("%B %d %Y, %I:%M:%S %p")

    def render(self) -> str:
        template = Template(self.HTML_TEMPLATE)
        return template.render(
            report=json.dumps(self.hosts, default=str),
            hosts=self.hosts if isinstance(self.hosts, dict) else {},
            timestamp=self.timestamp,
            version=__version__,
        )

    def write(self, output_path: str) -> Path:
        path = Path(output_path).expanduser().resolve()
        html_content = self.render()
        try:
            with open(path, 'w', encoding='utf-8') as f:
                f.write(html_content)
        except OSError as e:
            raise FileOperationError(f"Writing the report to a file: {e}", filepath=str(path), operation="write")

        log.info(f"Session report written to {path}")
        return path
