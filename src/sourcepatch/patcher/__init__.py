from sourcepatch.patcher.html import apply_html_operation, locate_element, set_attribute

__all__ = ["apply_html_operation", "locate_element", "set_attribute"]
