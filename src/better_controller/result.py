"""Result wrapper for service responses."""

from typing import Any


class Result:
    """Resource plus metadata returned by a service.

    `meta["success"]` defaults to True. The controller unwraps a Result into
    a plain dict and treats `success == False` as a failed action.

    Example:
        Result(user, meta={"message": "Created"})
        Result(user, meta={"success": False, "error_type": "validation"})
    """

    def __init__(self, resource: Any = None, meta: dict[str, Any] | None = None) -> None:
        self.resource = resource
        self.meta: dict[str, Any] = {"success": True}
        if isinstance(meta, dict):
            self.meta.update(meta)

    def __repr__(self) -> str:
        return f"Result(resource={self.resource!r}, meta={self.meta!r})"

    @property
    def success(self) -> bool:
        return self.meta.get("success") is True

    @property
    def failure(self) -> bool:
        return not self.success

    @property
    def message(self) -> str | None:
        return self.meta.get("message")

    @property
    def errors(self) -> Any:
        return getattr(self.resource, "errors", None)

    @property
    def collection(self) -> Any:
        if is_collection(self.resource):
            return self.resource
        return None

    def __getitem__(self, key: str) -> Any:
        return self.to_dict()[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.to_dict().get(key, default)

    def to_dict(self) -> dict[str, Any]:
        """Dict view with None values dropped."""
        data = {
            "resource": self.resource,
            "collection": self.collection,
            "meta": self.meta,
            "success": self.success,
            "message": self.message,
            "errors": self.errors,
            "error": self.meta.get("error"),
            "error_type": self.meta.get("error_type"),
            "page_config": self.meta.get("page_config"),
        }
        return {k: v for k, v in data.items() if v is not None}


def is_collection(value: Any) -> bool:
    """True for list-like values; strings, bytes and mappings are not collections."""
    if value is None or isinstance(value, (str, bytes, dict)):
        return False
    return isinstance(value, (list, tuple, set, frozenset)) or (
        hasattr(value, "__iter__") and hasattr(value, "__len__") and not hasattr(value, "keys")
    )
