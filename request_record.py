from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional

import requests

# requests computes these itself, passing them through breaks the request
HOP_HEADERS = ("Host", "Content-Length", "Transfer-Encoding")

# keyword arguments of requests.request() that requests.Request() does not take
_SEND_ONLY_KWARGS = ("verify", "timeout", "proxies", "allow_redirects")


def _has_header(headers: Dict[str, str], name: str) -> bool:
    name = name.lower()
    return any(k.lower() == name for k in headers)


@dataclass(frozen=True)
class CurlRequest:
    """A request described by a curl command.

    Every field except `url` is optional in the command and falls back to
    its zero value. `origin + path` is the target without its query string;
    the query is only exposed through `query`.
    """

    url: str
    method: str = "GET"
    origin: str = ""
    path: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ""
    query: Dict[str, str] = field(default_factory=dict)
    raw_cookie: str = ""
    parsed_cookies: Dict[str, str] = field(default_factory=dict)
    user_agent: str = ""
    auth: str = ""
    referer: str = ""
    proxy: str = ""
    connect_timeout: int = 0
    max_time: int = 0
    insecure: bool = False
    ca_cert: str = ""
    cookie_jar: str = ""
    follow_redirects: bool = False

    def to_dict(self) -> Dict[str, Any]:
        out = {}
        for f in fields(self):
            value = getattr(self, f.name)
            out[f.name] = dict(value) if isinstance(value, dict) else value
        return out

    def to_requests_kwargs(self, default_timeout: Optional[float] = None) -> Dict[str, Any]:
        """Keyword arguments for requests.request() replaying this command."""
        headers = {k: v for k, v in self.headers.items() if k not in HOP_HEADERS}
        if self.user_agent and not _has_header(headers, "User-Agent"):
            headers["User-Agent"] = self.user_agent
        if self.referer and not _has_header(headers, "Referer"):
            headers["Referer"] = self.referer

        cookies = None
        if self.parsed_cookies and not _has_header(headers, "Cookie"):
            cookies = dict(self.parsed_cookies)

        auth = None
        if self.auth:
            if ":" in self.auth:
                user, pwd = self.auth.split(":", 1)
            else:
                user, pwd = self.auth, ""
            auth = (user, pwd)

        if self.insecure:
            verify = False
        elif self.ca_cert:
            verify = self.ca_cert
        else:
            verify = True

        if self.connect_timeout or self.max_time:
            timeout = (
                self.connect_timeout or default_timeout,
                self.max_time or default_timeout,
            )
        else:
            timeout = default_timeout

        return {
            "method": self.method,
            "url": self.url,
            "headers": headers,
            "data": self.body or None,
            "cookies": cookies,
            "auth": auth,
            "verify": verify,
            "timeout": timeout,
            "proxies": {"http": self.proxy, "https": self.proxy} if self.proxy else None,
            "allow_redirects": self.follow_redirects,
        }

    def to_request(self) -> requests.Request:
        """An unsent requests.Request; call .prepare() to inspect the wire form."""
        kwargs = self.to_requests_kwargs()
        for name in _SEND_ONLY_KWARGS:
            kwargs.pop(name)
        return requests.Request(**kwargs)
