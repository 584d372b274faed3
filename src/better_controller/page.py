"""PageConfig - structured description of a page produced by a page class.

A page class is instantiated as `Page(data, user=current_user)` and then
asked for the current action (`page.show()`), falling back to `page()`.
Dict results are wrapped in a PageConfig.
"""

from typing import Any


class PageConfig:
    """Named page components plus page metadata.

    Attributes:
        components: Component name -> component configuration.
        meta: Page metadata (`page_type`, `template`, ...).
    """

    def __init__(self, components: dict[str, Any] | None = None, meta: dict[str, Any] | None = None) -> None:
        self.components = dict(components) if isinstance(components, dict) else {}
        self.meta = dict(meta) if isinstance(meta, dict) else {}

    def __repr__(self) -> str:
        return f"PageConfig(components={list(self.components)}, meta={self.meta!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PageConfig):
            return NotImplemented
        return self.components == other.components and self.meta == other.meta

    def __getitem__(self, key: str) -> Any:
        return self.to_dict()[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.to_dict().get(key, default)

    @property
    def page_type(self) -> str | None:
        return self.meta.get("page_type")

    @property
    def template(self) -> str | None:
        return self.meta.get("template")

    def has_component(self, name: str) -> bool:
        return bool(self.components.get(name))

    def component(self, name: str) -> Any:
        return self.components.get(name)

    @property
    def component_names(self) -> list[str]:
        return list(self.components)

    def present_components(self) -> dict[str, Any]:
        return {k: v for k, v in self.components.items() if v}

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "components": self.components,
            "meta": self.meta,
            "page_type": self.page_type,
        }
        data.update(self.components)
        return {k: v for k, v in data.items() if v is not None}

    @classmethod
    def from_value(cls, value: Any) -> Any:
        """Wrap dicts; pass PageConfig, None and custom objects through."""
        if value is None or isinstance(value, PageConfig):
            return value
        if isinstance(value, dict):
            components = value.get("components")
            if isinstance(components, dict):
                return cls(components, value.get("meta"))
            meta = value.get("meta") if isinstance(value.get("meta"), dict) else {}
            return cls({k: v for k, v in value.items() if k != "meta"}, meta)
        return value


def build_page_config(page_class: Any, data: Any, action: str, user: Any = None) -> Any:
    """Instantiate `page_class` and ask it for the config of `action`."""
    page = page_class(data, user=user)
    method = getattr(page, action, None)
    if callable(method):
        result = method()
    elif callable(page):
        result = page()
    else:
        raise TypeError(f"Page {page_class!r} does not respond to {action!r} or __call__")
    return PageConfig.from_value(result)
