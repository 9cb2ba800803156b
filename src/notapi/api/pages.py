"""Minimal HTML page renderer for the landing and not-found pages."""

from html import escape
from string import Template

from aiohttp import web

PAGE = Template("""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<meta name="description" content="$page_description">
<meta name="robots" content="$robots">
<title>$page_title</title>
</head>
<body>
<main>
<h1>$title</h1>
<p>$description</p>
</main>
</body>
</html>
""")

INDEX = {
    "page": {
        "title": "NotAPI",
        "description": "A simple multi-featured API",
        "robots": "index,follow",
    },
    "title": "NotAPI",
    "description": (
        'A simple multi-featured API: <a href="/api/morse?en=SOS">morse</a>, '
        '<a href="/api/romans?en=2024">romans</a>, spamwatch and lyrics.'
    ),
}

NOT_FOUND = {
    "page": {
        "title": "404 - NotAPI",
        "description": "Page not found",
        "robots": "noindex",
    },
    "title": "404",
    "description": "Didn't find anything here!",
}


def render_page(template: dict, status: int = 200) -> web.Response:
    """
    Render a page description into an HTML response.

    ``description`` is trusted markup; every other value is escaped.
    """
    page = template["page"]
    html = PAGE.substitute(
        page_title=escape(page["title"]),
        page_description=escape(page["description"]),
        robots=escape(page["robots"]),
        title=escape(template["title"]),
        description=template["description"],
    )
    response = web.Response(text=html, status=status, content_type="text/html")
    response.headers["Cache-Control"] = "public, max-age=2592000"
    return response
