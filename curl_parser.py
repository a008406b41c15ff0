import logging
import re
from typing import Callable, Dict, List, Optional, Tuple
from urllib.parse import parse_qs, urlsplit

import curl_options as opts
from request_record import CurlRequest

logger = logging.getLogger(__name__)

_CONTINUATION = re.compile(r"\\\r?\n")
_CURL_PREFIX = re.compile(r"^curl\s+")

# target candidates start a token: at start of text, after whitespace or a quote
_QUOTED_URL = re.compile(r"""(?<![^\s'"])(['"])(https?://[^\s'"]+)\1""")
_LOOSE_URL = re.compile(r"""(?<![^\s'"])(https?://[^\s'"]+)""")


class TargetNotFound(ValueError):
    """The command holds no http:// or https:// address."""


def normalize_command(curl_cmd: str) -> str:
    """Join continuation lines and drop the leading `curl` keyword."""
    cmd = curl_cmd.strip()
    cmd = _CONTINUATION.sub(" ", cmd)
    cmd = _CURL_PREFIX.sub("", cmd)
    return cmd.strip()


def parse_cookie_string(cookie: str) -> Dict[str, str]:
    """Split "a=1; b=2" into {"a": "1", "b": "2"}; pairs without "=" are dropped."""
    cookies = {}
    for pair in cookie.split(";"):
        pair = pair.strip()
        if "=" not in pair:
            continue
        name, value = pair.split("=", 1)
        cookies[name.strip()] = value.strip()
    return cookies


class CurlExtractor:
    """
    Turns one curl command into a CurlRequest.

    Each extract_* method is an independent pass over the normalized text.
    Two passes consume earlier results: query parameters are read from the
    extracted URL, and the Cookie header is a fallback for the cookie option.
    Everything but the URL is best effort: a missing or malformed option
    leaves its field at the default.
    """

    def __init__(self, curl_cmd: str):
        self.curl_cmd = curl_cmd
        self.cmd = normalize_command(curl_cmd)

    def parse(self) -> CurlRequest:
        cmd = self.cmd
        logger.debug("parsing curl command: %r", cmd)

        url = self.extract_url()
        origin, path = self.split_url(url)
        headers = self.extract_headers()

        fields = {
            "url": url,
            "origin": origin,
            "path": path,
            "method": self.extract_method(),
            "headers": headers,
            "body": self.extract_body(),
            "query": self.extract_query(url),
        }

        raw_cookie = self.extract_cookie(headers)
        if raw_cookie:
            fields["raw_cookie"] = raw_cookie
            fields["parsed_cookies"] = parse_cookie_string(raw_cookie)

        fields.update(self.extract_scalars())
        return CurlRequest(**fields)

    # --- target ---------------------------------------------------------

    def extract_url(self) -> str:
        cmd = self.cmd
        # quoted form first: it cannot swallow trailing option text
        for m in _QUOTED_URL.finditer(cmd):
            if not opts.ends_with_flag(cmd[:m.start()], opts.ADDRESS_VALUED):
                logger.debug("target (quoted): %s", m.group(2))
                return m.group(2)

        for m in _LOOSE_URL.finditer(cmd):
            prefix = cmd[:m.start()].rstrip("'\"")
            if not opts.ends_with_flag(prefix, opts.ADDRESS_VALUED):
                logger.debug("target: %s", m.group(1))
                return m.group(1)

        raise TargetNotFound("No http:// or https:// URL found in curl command")

    @staticmethod
    def split_url(url: str) -> Tuple[str, str]:
        """(scheme://host[:port], path) of the URL; empty when it does not parse."""
        try:
            parts = urlsplit(url)
        except ValueError:
            return "", ""
        return f"{parts.scheme}://{parts.netloc}", parts.path

    @staticmethod
    def extract_query(url: str) -> Dict[str, str]:
        # only the first value of a repeated key is kept
        try:
            query = urlsplit(url).query
        except ValueError:
            return {}
        return {k: v[0] for k, v in parse_qs(query, keep_blank_values=True).items() if v}

    # --- method, headers, body -----------------------------------------

    def extract_method(self) -> str:
        method = opts.find_value(self.cmd, opts.METHOD.aliases, opts.METHOD.capture)
        if method:
            return method.upper()
        if opts.has_flag(self.cmd, opts.BODY_FLAGS):
            return "POST"
        return "GET"

    def extract_headers(self) -> Dict[str, str]:
        headers = {}
        for raw in opts.iter_values(self.cmd, opts.HEADER.aliases, opts.HEADER.capture):
            if ":" not in raw:
                continue
            name, value = raw.split(":", 1)
            headers[name.strip()] = value.strip()
        return headers

    def body_strategies(self) -> List[Tuple[str, Callable[[], Optional[str]]]]:
        """Body sources in priority order; the first one that yields wins."""
        cmd = self.cmd
        data = opts.DATA.aliases
        return [
            ("data, single quoted", lambda: opts.find_value(cmd, data, opts.SINGLE_QUOTED)),
            ("data, double quoted", lambda: opts.find_value(cmd, data, opts.DOUBLE_QUOTED)),
            ("data-raw", lambda: opts.find_value(cmd, opts.DATA_RAW.aliases, opts.DATA_RAW.capture)),
            ("data, unquoted", lambda: opts.find_value(cmd, data, opts.CONTIGUOUS)),
            ("form", self._form_body),
        ]

    def _form_body(self) -> Optional[str]:
        # field text is reused verbatim, not re-encoded
        form = opts.find_all(self.cmd, opts.FORM.aliases, opts.FORM.capture)
        return "&".join(form) if form else None

    def extract_body(self) -> str:
        for name, strategy in self.body_strategies():
            body = strategy()
            if body is not None:
                logger.debug("body from %s", name)
                return body
        return ""

    # --- cookies -------------------------------------------------------

    def cookie_strategies(self, headers: Dict[str, str]) -> List[Tuple[str, Callable[[], Optional[str]]]]:
        """Cookie sources in priority order: the cookie option beats a Cookie header."""
        cmd = self.cmd
        aliases = opts.COOKIE.aliases

        def from_unquoted():
            value = opts.find_value(cmd, aliases, opts.UNQUOTED_BOUNDED)
            return value.strip() if value is not None else None

        return [
            ("cookie option, single quoted", lambda: opts.find_value(cmd, aliases, opts.SINGLE_QUOTED)),
            ("cookie option, double quoted", lambda: opts.find_value(cmd, aliases, opts.DOUBLE_QUOTED)),
            ("cookie option, unquoted", from_unquoted),
            ("Cookie header", lambda: headers.get("Cookie") or headers.get("cookie")),
        ]

    def extract_cookie(self, headers: Dict[str, str]) -> str:
        *option_strategies, (header_name, from_header) = self.cookie_strategies(headers)
        for name, strategy in option_strategies:
            cookie = strategy()
            if cookie is None:
                continue
            if cookie:
                logger.debug("cookie from %s", name)
                return cookie
            # an empty cookie option still ends the option search
            break

        cookie = from_header()
        if cookie:
            logger.debug("cookie from %s", header_name)
            return cookie
        return ""

    # --- auxiliary options ---------------------------------------------

    def extract_scalars(self) -> Dict[str, object]:
        values = {}
        for option in opts.SCALAR_OPTIONS:
            if option.capture is None:
                values[option.field] = opts.has_flag(self.cmd, option.aliases)
                continue

            raw = opts.find_value(self.cmd, option.aliases, option.capture)
            if raw is None:
                continue
            if option.field in opts.INTEGER_FIELDS:
                try:
                    values[option.field] = int(raw)
                except ValueError:
                    pass
            else:
                values[option.field] = raw.strip()
        return values


def parse_curl(curl_cmd: str) -> CurlRequest:
    """
    Parses a curl command (as copied from a browser's network tab) into a CurlRequest.

    Recognized options:
      -X / --request METHOD
      -H / --header "Name: value"
      -d / --data / --data-ascii / --data-urlencode, --data-raw / --data-binary
      -F / --form name=value (joined with "&" into the body)
      -b / --cookie "a=1; b=2" (falls back to a Cookie header)
      -A / --user-agent, -u / --user, -e / --referer, -x / --proxy
      --connect-timeout SEC, -m / --max-time SEC
      -k / --insecure, --cacert FILE, -c / --cookie-jar FILE, -L / --location

    Raises TargetNotFound when the command has no http(s) URL.
    """
    return CurlExtractor(curl_cmd).parse()
