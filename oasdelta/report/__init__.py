from .html import get_html_report_as_string

__all__ = ["get_html_report_as_string"]
