"""configuration-snippet parser.

Only a fixed set of directives is understood: header injection
(``more_set_headers``, ``add_header``, ``proxy_set_header``), gzip controls
and ``proxy_cache*``. Lines are split into directives on ``;`` outside
quotes. Any other directive makes its line unsupported, and a single
unsupported line vetoes the whole snippet.
"""

import re
from dataclasses import dataclass, field

GZIP_WARNINGS = {
    "gzip": "gzip must be enabled globally in Traefik static configuration",
    "gzip_comp_level": "gzip_comp_level is not configurable in Traefik and was ignored, "
                       "compression level is fixed",
    "gzip_types": "gzip_types is not configurable in Traefik and was ignored. "
                  "Compresses a fixed, internal set of MIME types",
}
PROXY_CACHE_WARNING = "proxy_cache is not supported in Traefik OSS and was ignored"
SNIPPET_SKIPPED_WARNING = (
    "configuration-snippet contains unsupported NGINX directives and was skipped")

_RESPONSE_HEADER_DIRECTIVES = ("more_set_headers", "add_header")

# "Name: value" pairs of more_set_headers / add_header
_QUOTED_HEADER_RE = re.compile(r'"\s*([^":\s]+)\s*:\s*([^"]*)"')


@dataclass
class ParsedSnippet:
    """Outcome of parsing one configuration-snippet."""
    request_headers: dict[str, str] = field(default_factory=dict)
    response_headers: dict[str, str] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)
    unsupported: list[str] = field(default_factory=list)

    @property
    def has_headers(self) -> bool:
        return bool(self.request_headers or self.response_headers)


def _split_statements(line: str) -> list[str] | None:
    """Split *line* on ``;`` outside quotes. None if a quote is left open."""
    statements = []
    current = []
    quote = None
    for ch in line:
        if quote:
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch == ";":
            statements.append("".join(current))
            current = []
            continue
        current.append(ch)
    if quote:
        return None
    statements.append("".join(current))
    return [s.strip() for s in statements if s.strip()]


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def _parse_response_headers(statement: str) -> list[tuple[str, str]] | None:
    """Parse ``more_set_headers "X: v" ["Y: w" ...]`` or ``add_header X v [always]``."""
    parts = statement.split(None, 1)
    directive = parts[0]
    args = parts[1].strip() if len(parts) > 1 else ""
    if args.startswith('"'):
        pairs = [(name, value.strip()) for name, value in _QUOTED_HEADER_RE.findall(args)]
        leftover = _QUOTED_HEADER_RE.sub("", args).strip()
        if directive == "add_header" and leftover == "always":
            leftover = ""
        # add_header sets exactly one header
        if not pairs or leftover or (directive == "add_header" and len(pairs) > 1):
            return None
        return pairs
    fields = args.split(None, 1)
    if directive != "add_header" or len(fields) < 2:
        return None
    value = fields[1]
    if value.endswith(" always"):
        value = value[: -len(" always")].rstrip()
    return [(fields[0], _unquote(value))]


def _parse_request_header(statement: str) -> list[tuple[str, str]] | None:
    """Parse ``proxy_set_header X-Foo bar``."""
    parts = statement.split(None, 2)
    if len(parts) < 3:
        return None
    return [(parts[1], _unquote(parts[2].strip()))]


def _classify(statement: str, parsed: ParsedSnippet) -> bool:
    """Record one directive; False when it is not supported."""
    directive = statement.split(None, 1)[0]
    if directive == "proxy_set_header":
        headers = _parse_request_header(statement)
        target = parsed.request_headers
    elif directive in _RESPONSE_HEADER_DIRECTIVES:
        headers = _parse_response_headers(statement)
        target = parsed.response_headers
    elif directive in GZIP_WARNINGS:
        parsed.warnings.append(GZIP_WARNINGS[directive])
        return True
    elif directive.startswith("proxy_cache"):
        parsed.warnings.append(PROXY_CACHE_WARNING)
        return True
    else:
        return False

    # NGINX variables cannot be evaluated by Traefik
    if headers is None or any("$" in value for _, value in headers):
        return False
    for name, value in headers:
        target[name] = value
    return True


def parse_configuration_snippet(snippet: str) -> ParsedSnippet:
    """Classify every directive of *snippet*, one or more per line.

    A line holding any unsupported directive is recorded whole in
    ``unsupported``.
    """
    parsed = ParsedSnippet()
    for raw in snippet.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        statements = _split_statements(line)
        if statements is None:
            parsed.unsupported.append(line)
            continue
        supported = True
        for statement in statements:
            if statement.startswith("#"):
                break
            if not _classify(statement, parsed):
                supported = False
        if not supported:
            parsed.unsupported.append(line)
    return parsed
