# app/pages.py
"""
Inline HTML pages for the auth flow.

Every dynamic value goes through html.escape.
"""
from __future__ import annotations

from html import escape
from typing import Iterable, Optional

from auth.models import User

_STYLE = """
        * { margin: 0; padding: 0; box-sizing: border-box; }
        body {
            font-family: system-ui, -apple-system, sans-serif;
            background: #f5f5f5;
            color: #222;
            min-height: 100vh;
            display: flex;
            align-items: center;
            justify-content: center;
            padding: 1rem;
        }
        .container { width: 100%; max-width: 400px; }
        h1 { text-align: center; margin-bottom: 1.5rem; }
        form { display: flex; flex-direction: column; gap: 0.75rem; }
        input { padding: 0.6rem; border: 1px solid #ccc; border-radius: 4px; }
        button { padding: 0.6rem; border: 0; border-radius: 4px; background: #222; color: #fff; }
        .errors { color: #b00020; margin-bottom: 1rem; list-style: none; }
        .switch { text-align: center; margin-top: 1rem; }
"""


def _page(title: str, body: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<head>
    <title>{escape(title)}</title>
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <style>{_STYLE}</style>
</head>
<body>
    <div class="container">
{body}
    </div>
</body>
</html>"""


def _errors_html(errors: Optional[Iterable[str]]) -> str:
    items = "".join(f"<li>{escape(e)}</li>" for e in (errors or []))
    return f'<ul class="errors">{items}</ul>' if items else ""


def login_page(errors: Optional[Iterable[str]] = None, email: str = "") -> str:
    """HTML for the login form."""
    return _page(
        "Login",
        f"""
        <h1>Log in</h1>
        {_errors_html(errors)}
        <form method="post" action="/login">
            <input type="email" name="email" placeholder="Email" value="{escape(email)}" required>
            <input type="password" name="password" placeholder="Password" required>
            <button type="submit">Log in</button>
        </form>
        <p class="switch">No account? <a href="/register">Register</a></p>
""",
    )


def register_page(errors: Optional[Iterable[str]] = None, email: str = "") -> str:
    """HTML for the registration form."""
    return _page(
        "Register",
        f"""
        <h1>Create account</h1>
        {_errors_html(errors)}
        <form method="post" action="/register">
            <input type="email" name="email" placeholder="Email" value="{escape(email)}" required>
            <input type="password" name="password" placeholder="Password" required>
            <input type="password" name="confirm_password" placeholder="Confirm password" required>
            <button type="submit">Register</button>
        </form>
        <p class="switch">Already registered? <a href="/login">Log in</a></p>
""",
    )


def dashboard_page(user: User) -> str:
    """HTML for the signed-in dashboard."""
    return _page(
        "Dashboard",
        f"""
        <h1>Dashboard</h1>
        <p>Signed in as <strong>{escape(user.email)}</strong></p>
        <p>Member since {escape(user.created_at.strftime("%Y-%m-%d"))}</p>
        <form method="post" action="/logout">
            <button type="submit">Log out</button>
        </form>
""",
    )


def error_page(status_code: int, message: str) -> str:
    """HTML for 404/500 style error pages."""
    return _page(
        f"Error {status_code}",
        f"""
        <h1>{status_code}</h1>
        <p>{escape(message)}</p>
        <p class="switch"><a href="/">Back to start</a></p>
""",
    )
