"""Command-line interface for colortag."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, NoReturn

import typer
import yaml
from bs4 import Tag

from .config import discover_config, set_cli_config_path
from .events import TagEvent, TagEventKind
from .exceptions import ColortagError
from .logger import setup_logger
from .palette import ColorPalette
from .parser import load_page, load_script
from .render import render_document
from .schemas import ScriptStep
from .surface import ColorTag

app = typer.Typer(
    name="colortag",
    help="Attach mutually exclusive color tags to the taggable items of a page",
    add_completion=False,
)


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbosity level: 0=warnings (default), 1=changes, 2=checks, 3=debug",
            min=0,
            max=3,
        ),
    ] = 0,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to config file (default: colortag_config.yaml)",
        ),
    ] = None,
) -> None:
    """Global options for colortag commands."""
    setup_logger(verbose)
    set_cli_config_path(config)


@app.command()
def palette() -> None:
    """List the configured palette colors."""
    try:
        colors = ColorPalette(discover_config().color_specs())
    except ColortagError as e:
        _fail(e)
    for color in colors:
        typer.echo(f"{color.name}\t{color.value}")


@app.command()
def resolve(
    token: Annotated[str, typer.Argument(help="Color name or value to look up")],
) -> None:
    """Resolve a color name or value against the palette."""
    try:
        colors = ColorPalette(discover_config().color_specs())
    except ColortagError as e:
        _fail(e)
    color = colors.resolve(token)
    if color is None:
        typer.echo(f"Error: no palette color matches '{token}'", err=True)
        raise typer.Exit(1)
    typer.echo(f"{color.name}\t{color.value}")


@app.command("init")
def init_command(
    page: Annotated[Path, typer.Argument(help="Path to the HTML page")],
    *,
    selector: Annotated[
        str | None, typer.Option("--selector", "-s", help="Selector for taggable items")
    ] = None,
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write the tagged page as HTML")
    ] = None,
) -> None:
    """Initialize a page and report the tags loaded from its markup."""
    try:
        tagger = _load_tagger(page)
        count = tagger.init(selector)
    except ColortagError as e:
        _fail(e)

    typer.echo(f"Initialized {count} taggable items")
    typer.echo(yaml.safe_dump({"tags": _tag_summary(tagger)}, sort_keys=False), nl=False)
    _write_output(tagger, output)


@app.command()
def simulate(
    page: Annotated[Path, typer.Argument(help="Path to the HTML page")],
    script: Annotated[Path, typer.Argument(help="Path to the interaction script YAML file")],
    *,
    selector: Annotated[
        str | None, typer.Option("--selector", "-s", help="Selector for taggable items")
    ] = None,
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write the final page as HTML")
    ] = None,
) -> None:
    """Replay clicks, touches, key presses and hovers against a page."""
    events: list[dict[str, str]] = []

    def record(event: TagEvent) -> None:
        events.append(event.to_dict())

    try:
        tagger = _load_tagger(page)
        steps = load_script(script).steps
        for kind in TagEventKind:
            tagger.on(kind, record)
        tagger.init(selector)
        for number, step in enumerate(steps, start=1):
            _run_step(tagger, step, number)
    except ColortagError as e:
        _fail(e)

    active = tagger.controller.active
    report: dict[str, Any] = {
        "events": events,
        "tags": _tag_summary(tagger),
        "open_palette": tagger.store.item_id(active.item) if active is not None else None,
    }
    typer.echo(yaml.safe_dump(report, sort_keys=False), nl=False)
    _write_output(tagger, output)


def _load_tagger(page: Path) -> ColorTag:
    document = load_page(page)
    return ColorTag(document, discover_config(page))


def _run_step(tagger: ColorTag, step: ScriptStep, number: int) -> None:
    target: Tag | None
    if step.target:
        target = tagger.document.query_selector(step.target)
        if target is None:
            raise ColortagError(f"Step {number}: no element matches '{step.target}'")
    else:
        target = tagger.document.focused or tagger.document.body

    if step.action == "click":
        tagger.click(target)
    elif step.action == "touch":
        tagger.touch(target)
    elif step.action == "hover":
        tagger.mouse_enter(target)
    elif step.action == "leave":
        tagger.mouse_leave(target)
    else:
        tagger.key_down(target, step.key or "")


def _tag_summary(tagger: ColorTag) -> dict[str, list[str]]:
    summary: dict[str, list[str]] = {}
    for item in tagger.document.query_selector_all(f".{tagger.config.taggable_item_class}"):
        summary[tagger.store.item_id(item)] = [tag.name for tag in tagger.tags(item)]
    return summary


def _write_output(tagger: ColorTag, output: Path | None) -> None:
    if output is None:
        return
    output.write_text(render_document(tagger.document), encoding="utf-8")
    typer.echo(f"Page written to {output}", err=True)


def _fail(error: ColortagError) -> NoReturn:
    typer.echo(f"Error: {error}", err=True)
    raise typer.Exit(1) from error


def main() -> int:
    """Main entry point."""
    app()
    return 0


if __name__ == "__main__":
    main()
