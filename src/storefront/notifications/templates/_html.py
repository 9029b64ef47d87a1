"""Shared right-to-left HTML wrapper for customer emails."""

from html import escape


def wrap(title: str, paragraphs: list[str], links: list[dict] | None = None) -> str:
    items = "".join(f"<p>{escape(p)}</p>" for p in paragraphs)
    if links:
        rows = "".join(f'<li><a href="{escape(link["url"])}">{escape(link["file_name"])}</a></li>' for link in links)
        items += f"<ul>{rows}</ul>"
    return (
        '<!DOCTYPE html><html lang="ar" dir="rtl"><head><meta charset="utf-8">'
        f"<title>{escape(title)}</title></head><body>{items}</body></html>"
    )


def link_lines(links: list[dict]) -> str:
    return "\n".join(f"- {link['file_name']}: {link['url']}" for link in links)
