"""
subscriptions/emails.py -- Confirmation email rendering.

Jinja2 with autoescaping on the HTML body: the subscriber name is user input
and ends up inside markup. The plain-text body is not escaped.

Templates live inline so the package installs without data files.
"""

from __future__ import annotations

from jinja2 import DictLoader, Environment, StrictUndefined, select_autoescape

CONFIRMATION_SUBJECT = "Welcome to our newsletter!"

_TEMPLATES = {
    "confirmation.html": (
        "<p>Hi {{ name }},</p>\n"
        "<p>Thanks for subscribing to our newsletter.</p>\n"
        '<p>Please <a href="{{ link }}">click here</a> to confirm your subscription.</p>\n'
        "<p>If you did not sign up, you can ignore this email.</p>\n"
    ),
    "confirmation.txt": (
        "Hi {{ name }},\n"
        "\n"
        "Thanks for subscribing to our newsletter.\n"
        "Visit {{ link }} to confirm your subscription.\n"
        "\n"
        "If you did not sign up, you can ignore this email.\n"
    ),
}

_env = Environment(
    loader=DictLoader(_TEMPLATES),
    autoescape=select_autoescape(enabled_extensions=("html",), default_for_string=False),
    undefined=StrictUndefined,
    keep_trailing_newline=True,
)


def confirmation_link(base_url: str, token: str) -> str:
    return f"{base_url}/subscriptions/confirm?subscription_token={token}"


def render_confirmation(name: str, link: str) -> tuple[str, str]:
    """Return (html_body, text_body) for a confirmation email."""
    html_body = _env.get_template("confirmation.html").render(name=name, link=link)
    text_body = _env.get_template("confirmation.txt").render(name=name, link=link)
    return html_body, text_body
