"""
API request and response models for Mailomat HTTP integrations.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in auth/, subscriptions/ and
newsletter/, which own the internal domain representation. Handlers map
between the two.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from newsletter.publisher import NewsletterIssue

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class NewsletterContent(BaseModel):
    text: str
    html: str


class NewsletterRequest(BaseModel):
    """JSON body for a newsletter publish request."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str
    content: NewsletterContent

    def to_issue(self) -> NewsletterIssue:
        # NewsletterIssue validates the title and raises InvalidNewsletterIssue.
        return NewsletterIssue(title=self.title, text=self.content.text, html=self.content.html)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class PublishResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    recipients: int


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail
