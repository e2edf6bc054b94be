from __future__ import annotations

from typing import Any, Final
from xml.sax.saxutils import escape as xml_escape

from oasdelta.diff import Diff, Summary

PAGE_TEMPLATE: Final[str] = (
    "<!DOCTYPE html>\n"
    "<html>\n"
    "<head>\n"
    '<meta charset="utf-8">\n'
    "<title>{title}</title>\n"
    "</head>\n"
    "<body>\n"
    "<h1>{title}</h1>\n"
    "{body}\n"
    "</body>\n"
    "</html>\n"
)

NO_CHANGES: Final[str] = "<p>No changes</p>"


def _scalar(value: Any) -> str:
    if value is None:
        return "<i>null</i>"
    return xml_escape(str(value))


def _render(value: Any, indent: int = 0) -> str:
    pad = " " * (indent * 2)

    if isinstance(value, dict):
        items = []
        for key, item in value.items():
            key = xml_escape(str(key))
            if isinstance(item, (dict, list)) and item:
                items.append(f"{pad}  <li>{key}\n{_render(item, indent + 2)}\n{pad}  </li>")
            else:
                items.append(f"{pad}  <li>{key}: {_render(item)}</li>")
        return f"{pad}<ul>\n" + "\n".join(items) + f"\n{pad}</ul>"

    if isinstance(value, list):
        if not value:
            return "[]"
        items = [f"{pad}  <li>{_render(item)}</li>" for item in value]
        return f"{pad}<ul>\n" + "\n".join(items) + f"\n{pad}</ul>"

    return _scalar(value)


def _render_summary(summary: Summary) -> str:
    rows = [
        f"<tr><td>{xml_escape(name)}</td><td>{details.added}</td>"
        f"<td>{details.deleted}</td><td>{details.modified}</td></tr>"
        for name, details in summary.components.items()
    ]
    return (
        "<table>\n"
        "<tr><th>Component</th><th>Added</th><th>Deleted</th><th>Modified</th></tr>\n"
        + "\n".join(rows)
        + "\n</table>"
    )


def get_html_report_as_string(diff: Diff, title: str = "API Changelog") -> str:
    if diff.empty():
        body = NO_CHANGES
    else:
        body = (
            "<h2>Summary</h2>\n"
            + _render_summary(diff.get_summary())
            + "\n<h2>Changes</h2>\n"
            + _render(diff.to_dict())
        )
    return PAGE_TEMPLATE.format(title=xml_escape(title), body=body)
