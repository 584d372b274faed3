"""
Click-based CLI for better-controller.

Commands:
- init: write a config file with the default settings
- generate controller / generate service: scaffold application code
- config: show the effective settings
"""

from pathlib import Path

import click
from jinja2 import Environment, PackageLoader
from rich.console import Console
from rich.table import Table

from better_controller import __version__
from better_controller.config import (
    DEFAULT_CONFIG_FILE,
    Settings,
    dump_settings,
    load_settings,
    resolve_config_path,
)
from better_controller.controller import REST_ROUTES, singularize, underscore

console = Console()

DEFAULT_ACTIONS = tuple(name for name, _, _ in REST_ROUTES)


def _template_env() -> Environment:
    return Environment(
        loader=PackageLoader("better_controller", "templates/generators"),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def _camelize(name: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in name.split("_"))


def _route_comments(file_name: str) -> dict[str, str]:
    comments = {}
    for name, suffix, methods in REST_ROUTES:
        path = f"/{file_name}{suffix}".replace("{id}", ":id")
        comments[name] = f"{'/'.join(methods)} {path}"
    return comments


def _write(path: Path, content: str, force: bool) -> bool:
    if path.exists() and not force:
        console.print(f"[yellow]skip[/]    {path} (exists, use --force to overwrite)")
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    console.print(f"[green]create[/]  {path}")
    return True


def _names(name: str, model: str | None = None) -> dict[str, str]:
    file_name = underscore(name.replace("-", "_")).removesuffix("_controller")
    model_name = underscore(model) if model else singularize(file_name)
    return {
        "file_name": file_name,
        "class_name": _camelize(file_name),
        "model_name": model_name,
        "model_class": _camelize(model_name),
        "service_class": f"{_camelize(model_name)}Service",
        "service_module": f"services.{model_name}_service",
    }


@click.group()
@click.version_option(version=__version__, prog_name="better-controller")
def main() -> None:
    """better-controller: declarative controller actions for FastAPI."""


@main.command()
@click.option("--path", "-p", "path", type=click.Path(), default=DEFAULT_CONFIG_FILE,
              help="Where to write the config file")
@click.option("--force", is_flag=True, help="Overwrite an existing file")
def init(path: str, force: bool) -> None:
    """Write a config file with the default settings."""
    target = Path(path)
    if target.exists() and not force:
        console.print(f"[bold red]Error:[/] {target} already exists (use --force)")
        raise SystemExit(1)
    dump_settings(Settings(), target)
    console.print(f"[bold green]✓ Config written to:[/] {target}")


@main.group()
def generate() -> None:
    """Scaffold controllers and services."""


@generate.command("controller")
@click.argument("name")
@click.argument("actions", nargs=-1)
@click.option("--output-dir", "-o", type=click.Path(), default=".", help="Application root")
@click.option("--model", "-m", help="Model name (defaults to the singular of NAME)")
@click.option("--skip-service", is_flag=True, help="Do not generate a service")
@click.option("--force", is_flag=True, help="Overwrite existing files")
def generate_controller(name: str, actions: tuple[str, ...], output_dir: str, model: str | None,
                        skip_service: bool, force: bool) -> None:
    """Generate NAME controller with ACTIONS (all REST actions by default)."""
    names = _names(name, model)
    env = _template_env()
    root = Path(output_dir)

    context = {
        **names,
        "actions": list(actions) or list(DEFAULT_ACTIONS),
        "routes": _route_comments(names["file_name"]),
    }
    if skip_service:
        context["service_class"] = None

    controller_path = root / "controllers" / f"{names['file_name']}_controller.py"
    _write(controller_path, env.get_template("controller.py.j2").render(context), force)

    if not skip_service:
        service_path = root / "services" / f"{names['model_name']}_service.py"
        _write(service_path, env.get_template("service.py.j2").render(context), force)


@generate.command("service")
@click.argument("name")
@click.option("--output-dir", "-o", type=click.Path(), default=".", help="Application root")
@click.option("--force", is_flag=True, help="Overwrite existing files")
def generate_service(name: str, output_dir: str, force: bool) -> None:
    """Generate a service for model NAME."""
    names = _names(name, model=name)
    service_path = Path(output_dir) / "services" / f"{names['model_name']}_service.py"
    _write(service_path, _template_env().get_template("service.py.j2").render(names), force)


@main.command()
@click.option("--path", "-p", "path", type=click.Path(), help="Config file (defaults to $BETTER_CONTROLLER_CONFIG)")
def config(path: str | None) -> None:
    """Show the effective settings."""
    config_path = resolve_config_path(path)
    try:
        settings = load_settings(config_path)
    except ValueError as e:
        console.print(f"[bold red]Error:[/] {e}")
        raise SystemExit(1)

    source = str(config_path) if config_path.exists() else "defaults"
    table = Table(title=f"better-controller settings ({source})")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for key, value in _flatten(settings.model_dump()):
        table.add_row(key, repr(value))
    console.print(table)


def _flatten(data: dict, prefix: str = "") -> list[tuple[str, object]]:
    rows: list[tuple[str, object]] = []
    for key, value in data.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict) and value:
            rows.extend(_flatten(value, f"{name}."))
        else:
            rows.append((name, value))
    return rows


if __name__ == "__main__":
    main()
