from __future__ import annotations

from html import escape

from app.services.video_index import IndexSnapshot
from app.services.video_service import video_url

_PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{title}</title>
<link rel="icon" href="/favicon.ico">
<style>
body {{ font-family: sans-serif; margin: 2rem; }}
table {{ border-collapse: collapse; }}
td, th {{ padding: 0.25rem 0.75rem; text-align: left; border-bottom: 1px solid #ddd; }}
</style>
</head>
<body>
<h1>{title}</h1>
<p>Root: <code>{root}</code> &middot; {count} video(s)</p>
<form method="post" action="/reload"><button type="submit">Reload</button></form>
{body}
</body>
</html>
"""


def _render_rows(snapshot: IndexSnapshot) -> str:
    if not snapshot.entries:
        return "<p>No videos found.</p>"
    rows = []
    for entry in snapshot.entries:
        url = escape(video_url(entry.key), quote=True)
        rows.append(
            f'<tr><td><a href="{url}">{escape(entry.key)}</a></td>'
            f"<td>{escape(entry.path)}</td></tr>"
        )
    return "<table>\n<tr><th>Video</th><th>Source</th></tr>\n" + "\n".join(rows) + "\n</table>"


def render_listing_page(snapshot: IndexSnapshot, *, title: str = "Videos") -> str:
    return _PAGE_TEMPLATE.format(
        title=escape(title),
        root=escape(snapshot.root_path),
        count=snapshot.count,
        body=_render_rows(snapshot),
    )
