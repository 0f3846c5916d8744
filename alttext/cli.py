"""Typer CLI: scan a page for images, describe them, or caption a single image."""

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from alttext.ai.chain import CaptionChain
from alttext.core.config import get_config
from alttext.core.credentials import CredentialStore
from alttext.core.errors import AltTextError
from alttext.core.image_io import ImageLoader
from alttext.core.logging import setup_logging
from alttext.core.materializer import ImageMaterializer
from alttext.models.entities import BulkProgress, ImageAnalysis
from alttext.ocr.engine import OcrEngine
from alttext.ocr.factory import get_text_recognizer
from alttext.page.html import HtmlPage
from alttext.page.nodes import BoundingRect, ImageElement
from alttext.page.static import StaticPage
from alttext.workers.analyzer import ImageAnalyzer
from alttext.workers.labeling import ImageLabelingService
from alttext.workers.scanner import ImageScanner

app = typer.Typer(no_args_is_help=True)
console = Console()


def _load_page(page: Path, base_url: str, probe: bool) -> HtmlPage:
    if not page.is_file():
        typer.echo(f"Page not found: {page}", err=True)
        raise typer.Exit(1)
    loader = ImageLoader() if probe else None
    return HtmlPage.from_html(page.read_text(encoding="utf-8"), base_url, loader=loader, probe_sizes=probe)


def _analysis_table(analyses: list[ImageAnalysis]) -> Table:
    table = Table(title=None)
    table.add_column("ID")
    table.add_column("Caption")
    table.add_column("Confidence", justify="right")
    table.add_column("Model")
    table.add_column("Error")
    for analysis in analyses:
        caption = analysis.caption_result
        table.add_row(
            analysis.image.id,
            caption.short_caption if caption else "",
            f"{caption.confidence:.2f}" if caption else "",
            caption.model if caption else "",
            analysis.error or "",
        )
    return table


@app.command()
def scan(
    page: Path = typer.Argument(..., help="HTML file to scan"),
    base_url: str = typer.Option(..., "--base-url", help="URL the page was served from; resolves relative image sources"),
    probe: bool = typer.Option(False, "--probe", help="Fetch images without width/height attributes to learn their size"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log INFO to stderr"),
) -> None:
    """List description-worthy images on a page (ID | Source | Size | Alt | Needs description)."""
    setup_logging(verbose)
    html_page = _load_page(page, base_url, probe)
    records = ImageScanner(html_page, get_config()).scan_page()
    if not records:
        typer.echo("No eligible images.")
        return
    table = Table(title=None)
    table.add_column("ID")
    table.add_column("Source")
    table.add_column("Size")
    table.add_column("Alt")
    table.add_column("Needs description")
    for r in records:
        table.add_row(r.id, r.src, f"{r.width}x{r.height}", r.alt, "yes" if r.needs_description else "no")
    console.print(table)


@app.command()
def describe(
    page: Path = typer.Argument(..., help="HTML file to describe"),
    base_url: str = typer.Option(..., "--base-url", help="URL the page was served from; resolves relative image sources"),
    image_id: str | None = typer.Option(None, "--id", help="Describe only this image ID"),
    all_images: bool = typer.Option(False, "--all", help="Describe every image, not only those needing a description"),
    ocr: str = typer.Option("tesseract", "--ocr", help="Text recognizer: tesseract or mock"),
    probe: bool = typer.Option(False, "--probe", help="Fetch images without width/height attributes to learn their size"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log INFO to stderr"),
) -> None:
    """Run the description pipeline over a page and print the captions."""
    setup_logging(verbose)
    cfg = get_config()
    html_page = _load_page(page, base_url, probe)
    try:
        recognizer = get_text_recognizer(ocr, cfg)
    except ValueError as e:
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(1)
    service = ImageLabelingService(html_page, cfg, CredentialStore.from_settings(cfg), recognizer)

    def on_progress(progress: BulkProgress) -> None:
        if verbose:
            typer.echo(f"Describing {progress.completed}/{progress.total} ({progress.errors} errors)", err=True)

    async def run() -> list[ImageAnalysis]:
        await service.start()
        try:
            if image_id is not None:
                return [await service.analyze_image(image_id)]
            if all_images:
                return await service.bulk.analyze_bulk_images(service.get_images(), on_progress)
            return await service.describe_all_images(on_progress)
        finally:
            await service.stop()

    try:
        analyses = asyncio.run(run())
    except AltTextError as e:
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(1)
    if not analyses:
        typer.echo("No images need a description.")
        return
    console.print(_analysis_table(analyses))


@app.command()
def caption(
    locator: str = typer.Argument(..., help="Image URL, data URL or local file path"),
    ocr: str = typer.Option("tesseract", "--ocr", help="Text recognizer: tesseract or mock"),
    long: bool = typer.Option(False, "--long", help="Also print the long description"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log INFO to stderr"),
) -> None:
    """Run OCR and the caption chain on a single image."""
    setup_logging(verbose)
    cfg = get_config()
    loader = ImageLoader()
    try:
        width, height = loader.probe_size(locator) or (0, 0)
        recognizer = get_text_recognizer(ocr, cfg)
    except ValueError as e:
        typer.secho(str(e), fg=typer.colors.RED)
        raise typer.Exit(1)
    element = ImageElement(
        src=locator,
        natural_width=width,
        natural_height=height,
        rect=BoundingRect(width=float(width), height=float(height)),
        complete=bool(width and height),
    )
    page = StaticPage(locator, [element], loader=loader)
    chain = CaptionChain(cfg)
    chain.set_api_keys(CredentialStore.from_settings(cfg).get_api_keys())
    analyzer = ImageAnalyzer(OcrEngine(recognizer, page), ImageMaterializer(locator, loader), chain)
    record = ImageScanner(page, cfg).to_record(element)
    analysis = asyncio.run(analyzer.analyze_image(record))
    result = analysis.caption_result
    if result is not None:
        typer.echo(result.short_caption)
        if long:
            typer.echo(result.long_description)
        typer.echo(f"({result.provenance.value}, {result.model}, confidence {result.confidence:.2f})", err=True)
    if analysis.error:
        typer.secho(analysis.error, fg=typer.colors.YELLOW, err=True)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
