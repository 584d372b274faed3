"""Response builders: JSON envelopes and XML documents."""

import re
from typing import Any, Mapping
from xml.etree import ElementTree as ET

from fastapi.encoders import jsonable_encoder
from starlette.responses import JSONResponse, Response

from better_controller.config import Settings


def camelize(key: str) -> str:
    """`created_at` -> `createdAt`."""
    head, *rest = key.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def camelize_keys(data: Any) -> Any:
    if isinstance(data, Mapping):
        return {camelize(str(k)) if isinstance(k, str) else k: camelize_keys(v) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [camelize_keys(v) for v in data]
    return data


def format_error(error: Any) -> dict[str, Any]:
    """Normalize an error (exception, mapping, string, errors object) to a dict."""
    if isinstance(error, BaseException):
        return {"type": type(error).__name__, "message": str(error)}
    if isinstance(error, Mapping):
        return dict(error)
    if isinstance(error, str):
        return {"message": error}
    if hasattr(error, "full_messages"):
        return {"messages": list(error.full_messages), "details": jsonable_encoder(error)}
    if hasattr(error, "to_dict"):
        return error.to_dict()
    return {"message": str(error)}


def build_envelope(data: Any, meta: Mapping[str, Any] | None, settings: Settings,
                   root: str | None = None) -> dict[str, Any]:
    """Envelope body; with `serialization.include_root`, `data` is nested under `root`."""
    if root and settings.serialization.include_root:
        data = {root: data}
    body = {
        "data": jsonable_encoder(data),
        "meta": {"version": settings.api_version, **jsonable_encoder(dict(meta or {}))},
    }
    if settings.serialization.camelize_keys:
        body = camelize_keys(body)
    return body


def respond_with_success(data: Any = None, settings: Settings | None = None, status_code: int = 200,
                         meta: Mapping[str, Any] | None = None, root: str | None = None) -> JSONResponse:
    """`{"data": ..., "meta": {"version": ...}}` response."""
    return JSONResponse(build_envelope(data, meta, settings or Settings(), root), status_code=status_code)


def respond_with_error(error: Any = None, settings: Settings | None = None, status_code: int = 422,
                       meta: Mapping[str, Any] | None = None) -> JSONResponse:
    """`{"data": {"error": ...}, "meta": ...}` response."""
    data = {"error": format_error(error)}
    return JSONResponse(build_envelope(data, meta, settings or Settings()), status_code=status_code)


_TAG_INVALID = re.compile(r"[^A-Za-z0-9_.-]")


def _tag(name: Any) -> str:
    tag = _TAG_INVALID.sub("-", str(name).replace("_", "-")) or "item"
    return tag if not tag[0].isdigit() else f"n{tag}"


def _append(parent: ET.Element, name: Any, value: Any) -> None:
    element = ET.SubElement(parent, _tag(name))
    _fill(element, value)


def _fill(element: ET.Element, value: Any) -> None:
    if isinstance(value, Mapping):
        for key, item in value.items():
            _append(element, key, item)
    elif isinstance(value, (list, tuple, set)):
        element.set("type", "array")
        child = element.tag[:-1] if element.tag.endswith("s") else "item"
        for item in value:
            _append(element, child, item)
    elif value is None:
        element.set("nil", "true")
    elif isinstance(value, bool):
        element.set("type", "boolean")
        element.text = "true" if value else "false"
    else:
        element.text = str(value)


def to_xml(data: Any, root: str = "hash") -> str:
    """Serialize plain data to an XML document (keys dasherized)."""
    encoded = jsonable_encoder(data)
    if isinstance(encoded, list):
        root = "objects" if root == "hash" else root
    element = ET.Element(_tag(root))
    _fill(element, encoded)
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(element, encoding="unicode")


def xml_response(data: Any, status_code: int = 200, root: str = "hash") -> Response:
    return Response(to_xml(data, root=root), status_code=status_code, media_type="application/xml")
