"""Response format negotiation.

Order of precedence:
1. Explicit `?format=` query parameter.
2. Accept header, by q-value then by position.
3. HTML.
"""

from typing import Mapping

from starlette.requests import Request

from better_controller.dsl.response_builder import ResponseFormat

TURBO_STREAM_MIME = "text/vnd.turbo-stream.html"

DEFAULT_MIME_TYPES: dict[str, tuple[str, ...]] = {
    ResponseFormat.HTML.value: ("text/html", "application/xhtml+xml"),
    ResponseFormat.JSON.value: ("application/json",),
    ResponseFormat.XML.value: ("application/xml", "text/xml"),
    ResponseFormat.CSV.value: ("text/csv",),
    ResponseFormat.TURBO_STREAM.value: (TURBO_STREAM_MIME,),
}


def mime_table(extra: Mapping[str, str] | None = None) -> dict[str, str]:
    """MIME type -> format, including extra registrations."""
    table = {mime: fmt for fmt, mimes in DEFAULT_MIME_TYPES.items() for mime in mimes}
    for fmt, mime in (extra or {}).items():
        table[mime.lower()] = fmt
    return table


def media_type_for(fmt: str, extra: Mapping[str, str] | None = None) -> str:
    """Primary MIME type of a format (falls back to text/plain)."""
    if extra and fmt in extra:
        return extra[fmt]
    mimes = DEFAULT_MIME_TYPES.get(fmt)
    return mimes[0] if mimes else "text/plain"


def parse_accept(header: str) -> list[str]:
    """Media ranges from an Accept header, most preferred first."""
    ranges: list[tuple[float, int, str]] = []
    for index, part in enumerate(header.split(",")):
        pieces = [p.strip() for p in part.split(";")]
        mime = pieces[0].lower()
        if not mime:
            continue
        quality = 1.0
        for param in pieces[1:]:
            if param.startswith("q="):
                try:
                    quality = float(param[2:])
                except ValueError:
                    quality = 0.0
        if quality > 0:
            ranges.append((-quality, index, mime))
    return [mime for _, _, mime in sorted(ranges)]


def negotiate_format(request: Request, extra: Mapping[str, str] | None = None) -> str:
    """Pick the response format for `request`."""
    explicit = request.query_params.get("format")
    if explicit:
        return explicit.lower()

    table = mime_table(extra)
    for mime in parse_accept(request.headers.get("accept", "")):
        if mime in table:
            return table[mime]
        if mime in ("*/*", "text/*"):
            return ResponseFormat.HTML.value
    return ResponseFormat.HTML.value
