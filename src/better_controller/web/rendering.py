"""HTML rendering with Jinja2.

Templates resolve from the application's template directories first and
from the package's built-in templates second, so applications can override
`shared/flash.html` and friends.
"""

import inspect
from pathlib import Path
from typing import Any, Mapping, Sequence

from jinja2 import (
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    PackageLoader,
    TemplateNotFound,
    select_autoescape,
)
from markupsafe import Markup

from better_controller.config import Settings

PAGE_TEMPLATE = "better_controller/page.html"


class Component:
    """Base class for renderable components.

    Subclasses set `template_name` or override `render()`. Locals passed at
    construction are available to the template, with the component itself
    as `component`.
    """

    template_name: str | None = None

    def __init__(self, **locals: Any) -> None:
        self.locals = locals

    def render(self, renderer: "Renderer") -> str:
        if not self.template_name:
            raise NotImplementedError(f"{type(self).__name__} needs template_name or render()")
        return renderer.render_template(self.template_name, {**self.locals, "component": self})


class Renderer:
    """Jinja2 environment plus the render operations controllers need."""

    def __init__(self, template_dirs: Sequence["str | Path"] = (), layout: str | None = "layout.html") -> None:
        search_path = [str(d) for d in template_dirs if Path(d).is_dir()]
        self.env = Environment(
            loader=ChoiceLoader([
                FileSystemLoader(search_path),
                PackageLoader("better_controller", "templates"),
            ]),
            autoescape=select_autoescape(["html", "xml"]),
        )
        self.layout = layout

    @classmethod
    def from_settings(cls, settings: Settings) -> "Renderer":
        return cls(settings.html.template_dirs, layout=settings.html.layout)

    @staticmethod
    def template_name(path: str) -> str:
        """`users/form` -> `users/form.html`; names with a suffix are kept."""
        return path if Path(path).suffix else f"{path}.html"

    def has_template(self, name: str) -> bool:
        try:
            self.env.get_template(self.template_name(name))
        except TemplateNotFound:
            return False
        return True

    def render_template(self, name: str, context: Mapping[str, Any] | None = None,
                        layout: bool = False) -> str:
        """Render a template, optionally wrapped in the layout as `content`."""
        ctx = dict(context or {})
        body = self.env.get_template(self.template_name(name)).render(ctx)
        if layout:
            return self.wrap_in_layout(body, ctx)
        return body

    def wrap_in_layout(self, body: str, context: Mapping[str, Any] | None = None) -> str:
        """Render the layout around `body`; without a layout, `body` is returned as is."""
        if not self.layout or not self.has_template(self.layout):
            return body
        ctx = {**dict(context or {}), "content": Markup(body)}
        return self.env.get_template(self.template_name(self.layout)).render(ctx)

    def render_partial(self, path: str, locals: Mapping[str, Any] | None = None) -> str:
        return self.render_template(path, locals)

    def render_component(self, component: Any, locals: Mapping[str, Any] | None = None) -> str:
        """Render a component class (instantiated with `locals`) or instance."""
        instance = component(**dict(locals or {})) if inspect.isclass(component) else component
        if hasattr(instance, "render"):
            return str(instance.render(self))
        if hasattr(instance, "__html__"):
            return str(instance.__html__())
        return str(instance)

    def render_page(self, page_config: Any, context: Mapping[str, Any] | None = None,
                    layout: bool = False) -> str:
        """Render a page config with its own template or the built-in one."""
        template = getattr(page_config, "template", None) or PAGE_TEMPLATE
        ctx = {**dict(context or {}), "page_config": page_config}
        return self.render_template(template, ctx, layout=layout)
