"""HTML views for the board: login form, public list, admin view and the load error page"""
import json
import time
from html import escape
from typing import List, Optional

from noticeboard import schemas

BASE_STYLE = """
        body {
            margin: 0;
            padding: 0;
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', 'Roboto', 'Helvetica', 'Arial', sans-serif;
            background-color: #f5f5f5;
            color: #333333;
        }
        .container {
            max-width: 800px;
            margin: 40px auto;
            padding: 0 16px;
        }
        h1 {
            color: #4caf50;
        }
        button {
            padding: 8px 16px;
            background-color: #4caf50;
            color: #ffffff;
            border: none;
            border-radius: 4px;
            cursor: pointer;
        }
        button:hover {
            background-color: #45a049;
        }
        button.danger {
            background-color: #e53935;
        }
        .error {
            color: #e53935;
            text-align: center;
            margin-top: 10px;
        }
"""


def render_login_page(project_name: str, error: bool = False) -> str:
    error_html = '<div class="error">Incorrect password, please try again</div>' if error else ""
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{escape(project_name)} - Login</title>
    <style>{BASE_STYLE}
        .login {{
            width: 300px;
            margin: 20vh auto 0;
            padding: 20px;
            background-color: #ffffff;
            border-radius: 8px;
            box-shadow: 0 2px 8px rgba(0, 0, 0, 0.1);
        }}
        .login h1 {{
            text-align: center;
        }}
        .login input, .login button {{
            width: 100%;
            padding: 10px;
            margin: 10px 0;
            box-sizing: border-box;
        }}
    </style>
</head>
<body>
    <div class="login">
        <h1>{escape(project_name)}</h1>
        <form method="post" enctype="application/x-www-form-urlencoded">
            <input type="password" name="password" placeholder="Password" required>
            <button type="submit">Log in</button>
            {error_html}
        </form>
    </div>
</body>
</html>"""


def render_pagination(pagination: schemas.Pagination) -> str:
    if pagination.total_pages <= 1:
        return ""
    links = []
    if pagination.current_page > 1:
        links.append(f'<a href="?page={pagination.current_page - 1}">Previous</a>')
    for page in range(1, pagination.total_pages + 1):
        if page == pagination.current_page:
            links.append(f'<span class="current">{page}</span>')
        else:
            links.append(f'<a href="?page={page}">{page}</a>')
    if pagination.current_page < pagination.total_pages:
        links.append(f'<a href="?page={pagination.current_page + 1}">Next</a>')
    return f'<nav class="pagination">{" ".join(links)}</nav>'


def render_announcement(announcement: schemas.Announcement, is_admin: bool) -> str:
    title = escape(announcement.title or "Untitled")
    content = escape(announcement.content or "No content").replace("\n", "<br>")
    actions = ""
    if is_admin and announcement.id:
        ident = escape(json.dumps(announcement.id))
        actions = f"""
            <div class="admin-actions">
                <button onclick='editAnnouncement({ident})'>Edit</button>
                <button class="danger" onclick='deleteAnnouncement({ident})'>Delete</button>
            </div>"""
    return f"""
        <div class="announcement">
            <h2>{title}</h2>
            <p>{content}</p>{actions}
        </div>"""


ADMIN_FORMS = """
        <form id="add-form" class="panel" onsubmit="addAnnouncement(event)">
            <h2>New announcement</h2>
            <input type="text" name="id" placeholder="Custom ID (optional)">
            <input type="text" name="title" placeholder="Title" required>
            <textarea name="content" rows="5" placeholder="Content" required></textarea>
            <button type="submit">Publish</button>
        </form>
        <form id="edit-form" class="panel" style="display: none" onsubmit="saveAnnouncement(event)">
            <h2>Edit announcement</h2>
            <input type="hidden" name="id">
            <input type="text" name="title" required>
            <textarea name="content" rows="5" required></textarea>
            <button type="submit">Save</button>
            <button type="button" onclick="this.form.style.display = 'none'">Cancel</button>
        </form>"""

ADMIN_SCRIPT = """
    <script>
        const apiBase = %(api_base)s;
        const apiToken = %(api_token)s;

        function headers() {
            const h = { 'Content-Type': 'application/json' };
            if (apiToken) h['Authorization'] = 'Bearer ' + apiToken;
            return h;
        }

        async function request(method, url, body) {
            const response = await fetch(url, {
                method: method,
                headers: headers(),
                body: body ? JSON.stringify(body) : undefined,
                cache: 'no-store'
            });
            const data = await response.json().catch(() => ({ error: 'Request failed' }));
            if (!response.ok) {
                alert(data.error || 'Request failed');
                return null;
            }
            return data;
        }

        async function addAnnouncement(event) {
            event.preventDefault();
            const form = event.target;
            const payload = { title: form.elements['title'].value, content: form.elements['content'].value };
            const customId = form.elements['id'].value.trim();
            if (customId) payload.id = customId;
            if (await request('POST', apiBase, payload)) location.reload();
        }

        async function editAnnouncement(id) {
            const data = await request('GET', apiBase + '/' + encodeURIComponent(id));
            if (!data) return;
            const form = document.getElementById('edit-form');
            form.elements['id'].value = data.id;
            form.elements['title'].value = data.title;
            form.elements['content'].value = data.content;
            form.style.display = 'block';
            form.scrollIntoView();
        }

        async function saveAnnouncement(event) {
            event.preventDefault();
            const form = event.target;
            const id = form.elements['id'].value;
            const payload = { id: id, title: form.elements['title'].value, content: form.elements['content'].value };
            if (await request('PUT', apiBase + '/' + encodeURIComponent(id), payload)) location.reload();
        }

        async function deleteAnnouncement(id) {
            if (!confirm('Delete this announcement?')) return;
            if (await request('DELETE', apiBase + '/' + encodeURIComponent(id))) location.reload();
        }
    </script>"""


def _script_literal(value: str) -> str:
    # json string, with "</" broken up so it cannot close the script element
    return json.dumps(value).replace("</", "<\\/")


def render_board_page(
    title: str,
    announcements: List[schemas.Announcement],
    pagination: schemas.Pagination,
    base_path: str,
    is_admin: bool = False,
    api_token: Optional[str] = None,
) -> str:
    """
    List view, or the admin view when is_admin is set. The admin view talks to
    the JSON API and therefore embeds the API token for the logged-in operator.
    """
    items = "".join(render_announcement(a, is_admin) for a in announcements)
    if not items:
        items = '<p class="empty">No announcements yet.</p>'

    forms = ADMIN_FORMS if is_admin else ""
    script = ""
    if is_admin:
        script = ADMIN_SCRIPT % {
            "api_base": _script_literal(f"{base_path}/api/announcements"),
            "api_token": _script_literal(api_token or ""),
        }
    home = escape(base_path or "/")
    nav_link = f'<a href="{home}">Board</a>' if is_admin else f'<a href="{escape(base_path)}/admin">Manage</a>'

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{escape(title)}</title>
    <style>{BASE_STYLE}
        .announcement, .panel {{
            background-color: #ffffff;
            border-radius: 8px;
            padding: 20px;
            margin-bottom: 20px;
            box-shadow: 0 1px 3px rgba(0, 0, 0, 0.1);
        }}
        .announcement h2 {{
            margin-top: 0;
        }}
        .announcement p {{
            color: #666666;
            line-height: 1.6;
        }}
        .admin-actions {{
            display: flex;
            gap: 10px;
        }}
        .panel input, .panel textarea {{
            display: block;
            width: 100%;
            padding: 8px;
            margin-bottom: 10px;
            box-sizing: border-box;
        }}
        .pagination {{
            text-align: center;
            margin: 20px 0;
        }}
        .pagination a, .pagination span {{
            margin: 0 4px;
        }}
        .pagination .current {{
            font-weight: bold;
        }}
        header {{
            display: flex;
            justify-content: space-between;
            align-items: center;
        }}
    </style>
</head>
<body>
    <div class="container">
        <header>
            <h1>{escape(title)}</h1>
            <div>{nav_link} | <a href="{escape(base_path)}/logout">Log out</a></div>
        </header>{forms}
        {items}
        {render_pagination(pagination)}
    </div>{script}
</body>
</html>"""


def render_load_error(message: str, base_path: str) -> str:
    retry = f"{base_path or '/'}?_cb={int(time.time() * 1000)}"
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>Failed to load announcements</title>
</head>
<body>
    <h1>Failed to load announcements</h1>
    <p>Error: {escape(message)}</p>
    <p><a href="{escape(retry)}">Retry</a></p>
</body>
</html>"""
