from __future__ import annotations

import asyncio
import ipaddress
import logging
from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup

from resumind.config import Settings
from resumind.core.deadline import race_deadline
from resumind.core.text import truncate_text
from resumind.errors import ExternalServiceError, InputValidationError, RequestTimeoutError

logger = logging.getLogger(__name__)

USER_AGENT = "ResumindJobFetcher/1.0"
BLOCKED_HOSTNAMES = {"localhost", "127.0.0.1", "0.0.0.0"}
BLOCKED_PREFIXES = ("192.168.", "10.", "172.16.")


def _is_private_host(hostname: str) -> bool:
    if hostname in BLOCKED_HOSTNAMES or hostname.endswith(".localhost"):
        return True
    if hostname.startswith(BLOCKED_PREFIXES):
        return True
    try:
        address = ipaddress.ip_address(hostname.strip("[]"))
    except ValueError:
        return False
    return address.is_private or address.is_loopback or address.is_link_local or address.is_unspecified


def validate_job_url(url: str) -> str:
    """Reject anything but a public HTTPS URL. Returns the URL unchanged."""
    try:
        parsed = urlparse(url.strip())
        hostname = (parsed.hostname or "").lower()
    except ValueError as exc:
        raise InputValidationError("Invalid URL format") from exc

    if not parsed.scheme or not hostname:
        raise InputValidationError("Invalid URL format")
    if _is_private_host(hostname):
        raise InputValidationError("Invalid URL")
    if parsed.scheme != "https":
        raise InputValidationError("Only HTTPS URLs are supported")
    return url.strip()


def html_to_text(html: str) -> str:
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.extract()

    text = soup.get_text("\n")
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    return "\n".join(lines)


class JobPageFetcher:
    """Fetches a job posting as plain text.

    With a reader proxy configured the page is requested through it; otherwise
    the HTML is fetched directly and stripped.
    """

    def __init__(self, reader_url: str = "", *, timeout_sec: float = 20.0):
        self.reader_url = reader_url
        self.timeout_sec = timeout_sec

    @classmethod
    def from_settings(cls, settings: Settings) -> JobPageFetcher:
        return cls(settings.job_reader_url, timeout_sec=settings.job_fetch_timeout_sec)

    async def fetch(self, url: str) -> str:
        validate_job_url(url)
        return await race_deadline(
            asyncio.to_thread(self._fetch_sync, url),
            self.timeout_sec,
            lambda: RequestTimeoutError("Request timed out. Please try again."),
        )

    def _fetch_sync(self, url: str) -> str:
        target = f"{self.reader_url}{url}" if self.reader_url else url
        headers = {"User-Agent": USER_AGENT, "Accept": "text/plain" if self.reader_url else "text/html"}
        try:
            response = requests.get(target, headers=headers, timeout=self.timeout_sec)
            response.raise_for_status()
        except requests.Timeout as exc:
            raise RequestTimeoutError("Request timed out. Please try again.") from exc
        except requests.RequestException as exc:
            logger.warning("Failed to fetch job URL %s: %s", url, exc)
            raise ExternalServiceError("Failed to fetch job posting. Please check the URL.") from exc

        content = response.text if self.reader_url else html_to_text(response.text)
        if not content.strip():
            raise ExternalServiceError("No content found at the provided URL")
        return truncate_text(content)
