import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterator, List, Optional, Tuple

# Capture styles: regex fragments placed right after "<flag>\s+".
WORD = r"""['"]?(\w+)"""
DIGITS = r"(\d+)"
SINGLE_QUOTED = r"'([^']*)'"
DOUBLE_QUOTED = r'"([^"]*)"'
CONTIGUOUS = r"(\S+)"
# unquoted run of tokens up to the next flag, the next URL or end of input
UNQUOTED_BOUNDED = r"([^\s-]\S*(?:\s+[^\s-]\S*)*?)(?=\s+-|\s+https?://|$)"
# a quoted value ends at its closing quote, an unquoted one runs to end of line
RAW_TO_EOL = r"""(?:'([^']*)'|"([^"]*)"|(.*?)\s*$)"""

QUOTED_OR_CONTIGUOUS = "(?:" + "|".join([SINGLE_QUOTED, DOUBLE_QUOTED, CONTIGUOUS]) + ")"
QUOTED_OR_BOUNDED = "(?:" + "|".join([SINGLE_QUOTED, DOUBLE_QUOTED, UNQUOTED_BOUNDED]) + ")"

# a flag must start a token: "-d" never matches inside "--data" or "X-Device"
_FLAG_START = r"(?<![\w-])"
_FLAG_END = r"(?![\w-])"


@dataclass(frozen=True)
class Option:
    field: str
    aliases: Tuple[str, ...]
    capture: Optional[str] = None  # None: presence flag, or tried in several styles


METHOD = Option("method", ("-X", "--request"), WORD)
HEADER = Option("headers", ("-H", "--header"), QUOTED_OR_CONTIGUOUS)
DATA = Option("body", ("-d", "--data", "--data-ascii", "--data-urlencode"))
DATA_RAW = Option("body", ("--data-raw", "--data-binary"), RAW_TO_EOL)
FORM = Option("body", ("-F", "--form"), QUOTED_OR_CONTIGUOUS)
COOKIE = Option("raw_cookie", ("-b", "--cookie"))

# any of these implies a request body, hence POST when no method is given
BODY_FLAGS = DATA.aliases + ("--data-raw", "--data-binary", "-F", "--form")

# options whose value is an address that must not be taken for the target
ADDRESS_VALUED = ("-x", "--proxy", "-e", "--referer")

SCALAR_OPTIONS = (
    Option("user_agent", ("-A", "--user-agent"), QUOTED_OR_BOUNDED),
    Option("auth", ("-u", "--user"), QUOTED_OR_BOUNDED),
    Option("referer", ("-e", "--referer"), QUOTED_OR_BOUNDED),
    Option("proxy", ("-x", "--proxy"), QUOTED_OR_BOUNDED),
    Option("connect_timeout", ("--connect-timeout",), DIGITS),
    Option("max_time", ("-m", "--max-time"), DIGITS),
    Option("insecure", ("-k", "--insecure")),
    Option("ca_cert", ("--cacert",), QUOTED_OR_BOUNDED),
    Option("cookie_jar", ("-c", "--cookie-jar"), QUOTED_OR_BOUNDED),
    Option("follow_redirects", ("-L", "--location")),
)

INTEGER_FIELDS = {"connect_timeout", "max_time"}


def _alternation(aliases: Tuple[str, ...]) -> str:
    # longest first so "--data-raw" is not shadowed by "--data"
    return "(?:" + "|".join(re.escape(a) for a in sorted(aliases, key=len, reverse=True)) + ")"


@lru_cache(maxsize=None)
def option_regex(aliases: Tuple[str, ...], capture: str) -> "re.Pattern[str]":
    flags = re.MULTILINE if capture == RAW_TO_EOL else 0
    return re.compile(_FLAG_START + _alternation(aliases) + r"\s+" + capture, flags)


@lru_cache(maxsize=None)
def flag_regex(aliases: Tuple[str, ...]) -> "re.Pattern[str]":
    return re.compile(_FLAG_START + _alternation(aliases) + _FLAG_END)


def _first_group(match: "re.Match[str]") -> Optional[str]:
    """The value is in whichever alternative matched."""
    for group in match.groups():
        if group is not None:
            return group
    return None


def find_value(text: str, aliases: Tuple[str, ...], capture: str) -> Optional[str]:
    """Value of the first occurrence of an option, or None."""
    m = option_regex(aliases, capture).search(text)
    if not m:
        return None
    return _first_group(m)


def iter_values(text: str, aliases: Tuple[str, ...], capture: str) -> Iterator[str]:
    """Values of every occurrence of an option, in order of appearance."""
    for m in option_regex(aliases, capture).finditer(text):
        value = _first_group(m)
        if value:
            yield value


def find_all(text: str, aliases: Tuple[str, ...], capture: str) -> List[str]:
    return list(iter_values(text, aliases, capture))


def has_flag(text: str, aliases: Tuple[str, ...]) -> bool:
    return flag_regex(aliases).search(text) is not None


def ends_with_flag(prefix: str, aliases: Tuple[str, ...]) -> bool:
    """True when `prefix` ends with one of the flags plus whitespace,
    i.e. whatever follows `prefix` is that flag's value."""
    pattern = _FLAG_START + _alternation(aliases) + r"\s+$"
    return re.search(pattern, prefix) is not None
