from __future__ import annotations

import json
from pathlib import Path

import typer

from listingstamp.config import load_config, write_default_config
from listingstamp.constants import SLOT_PRIMARY_LOGO, SLOT_SECONDARY_LOGO
from listingstamp.encoder import resolve_output_format
from listingstamp.errors import EncodingFailure, MandatoryAssetMissing, TemplateNotFound
from listingstamp.formatting import status_from_mls
from listingstamp.log import get_logger, setup_logging
from listingstamp.models import AgentInfo, BrandAsset, ListingFields, RenderRequest
from listingstamp.naming import build_output_name
from listingstamp.pipeline import RenderPipeline, bind_images, preview_resolution
from listingstamp.templates import get_template, list_templates

app = typer.Typer(add_completion=False, no_args_is_help=True, help="Real-estate listing graphic renderer.")
LOGGER = get_logger("cli")


def _fail(message: str, code: int = 1) -> None:
    typer.secho(message, err=True, fg=typer.colors.RED)
    raise typer.Exit(code)


@app.command()
def render(
    template: str | None = typer.Option(None, "--template", "-t", help="Template id (see `templates`)."),
    address: str = typer.Option("", "--address", help='Full address, e.g. "123 Main St, Austin, TX 78701".'),
    price: str | None = typer.Option(None, "--price"),
    beds: str | None = typer.Option(None, "--beds"),
    baths: str | None = typer.Option(None, "--baths"),
    sqft: str | None = typer.Option(None, "--sqft"),
    status: str | None = typer.Option(None, "--status", help="Status key, e.g. just_listed, just_sold."),
    mls_status: str | None = typer.Option(None, "--mls-status", help="Free-form MLS status text."),
    photo: list[str] = typer.Option([], "--photo", help="Listing photo path or URL (repeat for a second photo)."),
    headshot: str | None = typer.Option(None, "--headshot", help="Agent headshot path or URL."),
    primary_logo: str | None = typer.Option(None, "--primary-logo", help="Custom primary logo (overrides default)."),
    secondary_logo: str | None = typer.Option(None, "--secondary-logo", help="Custom secondary logo (overrides default)."),
    agent_name: str | None = typer.Option(None, "--agent-name"),
    agent_phone: str | None = typer.Option(None, "--agent-phone"),
    resolution: int | None = typer.Option(None, "--resolution", min=16, help="Output width in pixels."),
    preview: bool = typer.Option(False, "--preview", help="Render at preview scale instead of export resolution."),
    output_format: str | None = typer.Option(None, "--format", help="Output format: png|jpeg"),
    quality: int | None = typer.Option(None, "--quality", min=1, max=100),
    out: Path = typer.Option(Path("."), "--out", help="Output directory."),
    name_template: str | None = typer.Option(None, "--name", help='Output filename template, e.g. "{street}_{status}.{ext}"'),
    proxy_base: str | None = typer.Option(None, "--proxy-base", help="Route remote images through <base>/api/proxy-image."),
    config_path: Path | None = typer.Option(None, "--config", exists=True, dir_okay=False, help="Config YAML file."),
    log_level: str = typer.Option("info", "--log-level"),
) -> None:
    """Render one listing graphic and write it to --out."""
    setup_logging(log_level)
    cfg = load_config(config_path)
    if proxy_base:
        cfg["proxy_base"] = proxy_base
    if output_format:
        cfg["output_format"] = output_format
    if quality is not None:
        cfg["quality"] = quality

    try:
        out_ext, _ = resolve_output_format(str(cfg.get("output_format") or "png"))
    except ValueError as exc:
        _fail(str(exc))

    status_key = status or (status_from_mls(mls_status) if mls_status else None)
    fields = ListingFields(address=address).with_overrides(
        {"price": price, "beds": beds, "baths": baths, "sqft": sqft, "status": status_key}
    )
    default_logos = cfg.get("default_logos") or {}
    images = bind_images(
        photos=photo,
        headshot=headshot,
        logos={
            SLOT_PRIMARY_LOGO: BrandAsset(custom=primary_logo, use_default=primary_logo is None),
            SLOT_SECONDARY_LOGO: BrandAsset(custom=secondary_logo, use_default=secondary_logo is None),
        },
        default_logos=default_logos,
    )
    template_id = template or str(cfg.get("template") or "navy_header")
    export_width = int(resolution or cfg.get("export_resolution") or 1080)
    if preview:
        export_width = preview_resolution(export_width, float(cfg.get("preview_scale") or 0.5))
    request = RenderRequest(
        template_id=template_id,
        fields=fields,
        images=images,
        agent=AgentInfo(name=agent_name, phone=agent_phone),
        resolution=export_width,
    )

    pipeline = RenderPipeline.from_config(cfg)
    try:
        result = pipeline.export(request, strict=True)
    except TemplateNotFound as exc:
        _fail(str(exc))
    except MandatoryAssetMissing as exc:
        _fail(f"No output: {exc}", code=2)
    except EncodingFailure as exc:
        _fail(f"Encoding failed: {exc}")

    name_tmpl = name_template or str(cfg.get("name_template") or "{template}_{street}_{status}.{ext}")
    try:
        output_name = build_output_name(name_tmpl, template_id, fields, extension=out_ext)
    except ValueError as exc:
        _fail(str(exc))
    out.mkdir(parents=True, exist_ok=True)
    output_file = out / output_name
    output_file.write_bytes(result.data)
    LOGGER.info("OK   %s (%sx%s, %.2fs)", output_file, result.width, result.height, result.elapsed)
    if result.skipped_slots:
        LOGGER.info("optional slots left empty: %s", ", ".join(result.skipped_slots))
    typer.echo(str(output_file))


@app.command("templates")
def templates_command() -> None:
    """List built-in templates."""
    for template_id in list_templates():
        tpl = get_template(template_id)
        width, height = tpl.reference_size
        typer.echo(f"{template_id:<18} {width}x{height}  {tpl.label}")


@app.command("inspect-template")
def inspect_template(
    template_id: str = typer.Argument(..., help="Template id."),
    resolution: int = typer.Option(1080, "--resolution", min=16),
    program: bool = typer.Option(False, "--program", help="Include the ordered draw program for sample data."),
) -> None:
    try:
        tpl = get_template(template_id)
    except TemplateNotFound as exc:
        _fail(str(exc))

    payload = tpl.describe()
    payload["output_size"] = list(tpl.output_size(resolution))
    payload["scale"] = round(tpl.scale_for(resolution), 4)
    if program:
        from listingstamp.compositor import order_program

        sample = ListingFields(
            address="123 Main St, Austin, TX 78701",
            price=450000,
            beds=3,
            baths=2,
            sqft=2100,
        )
        resolved = {slot: None for slot in tpl.declared_slots}
        ops = tpl.build_program(tpl.scale_for(resolution), sample, sample.status, resolved, AgentInfo("Jane Doe", "512-555-0100"))
        payload["program"] = [op.to_dict() for op in order_program(tpl, ops)]
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))


@app.command("init-config")
def init_config(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config file."),
) -> None:
    path = write_default_config(force=force)
    typer.echo(f"Config initialized: {path}")


def main() -> None:
    app()
