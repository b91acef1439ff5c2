"""Stage 5: PDF Rendering — convert the book's page layouts to a PDF via WeasyPrint + Jinja2.

Reads:  data/.cache/manifest.json  (BookManifest — title, narration)
        data/.cache/layouts.json   (BookLayout)
Writes: data/output/<title>.pdf    (final PDF)

Each page becomes one PDF page sized from its canvas (pixels at the canvas
dpi). Elements are placed as percentages of the canvas so the HTML does not
depend on a pixel unit. Local illustrations are embedded as ``file://`` URIs;
remote and data URLs pass through untouched.
"""
import logging
import re
import unicodedata
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

try:
    import weasyprint as _weasyprint  # requires native GTK/Pango libs at runtime
except OSError:  # pragma: no cover — native libs absent in test env
    _weasyprint = None  # type: ignore[assignment]

from layout.text_fit import MIN_FONT_SIZE, calculate_optimal_font_size
from models.layout import BookLayout, ImageElement, PageLayout, TextElement, TextStyle
from models.manifest import BookManifest
from settings import Settings

logger = logging.getLogger(__name__)

# Jinja2 templates ship inside the pipeline package
_TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"


def run(settings: Settings, manifest: BookManifest, book_layout: BookLayout) -> Path:
    """Render every page layout to a PDF and write it to the output directory.

    Returns the absolute path to the written PDF.
    """
    pages = [_page_context(layout, settings) for layout in book_layout.layouts]
    html = _render_html(manifest.story.title or manifest.book_id, pages)

    output_path = _output_path(settings, manifest)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if _weasyprint is None:  # pragma: no cover
        raise RuntimeError(
            "WeasyPrint native libraries (GTK/Pango) are not available. "
            "Follow https://doc.courtbouillon.org/weasyprint/stable/first_steps.html"
        )
    font_config = _weasyprint.text.fonts.FontConfiguration()
    stylesheets = []
    if settings.font_path is not None:
        stylesheets.append(_weasyprint.CSS(string=_font_face_css(settings.font_path), font_config=font_config))
    _weasyprint.HTML(
        string=html,
        base_url=str(settings.project_dir.resolve()),
    ).write_pdf(str(output_path), stylesheets=stylesheets, font_config=font_config)

    logger.info("Stage 5 complete → %s", output_path)
    logger.info("  Pages: %d", len(pages))
    return output_path


# ---------------------------------------------------------------------------
# HTML rendering
# ---------------------------------------------------------------------------

def _render_html(title: str, pages: list[dict[str, Any]]) -> str:
    """Render the Jinja2 template to an HTML string."""
    env = Environment(
        loader=FileSystemLoader(str(_TEMPLATE_DIR)),
        autoescape=select_autoescape(["html", "html.j2"]),
    )
    template = env.get_template("book.html.j2")
    sizes = sorted({(p["size_name"], p["width_mm"], p["height_mm"]) for p in pages})
    return template.render(title=title, pages=pages, page_sizes=sizes)


def _page_context(layout: PageLayout, settings: Settings) -> dict[str, Any]:
    canvas = layout.canvas
    return {
        "page_number": layout.page_number,
        "template": layout.template,
        "width_mm": canvas.width_mm,
        "height_mm": canvas.height_mm,
        "size_name": _size_name(canvas.width_mm, canvas.height_mm),
        "images": [
            {**_box(e, layout), "src": _image_src(e, settings)}
            for e in layout.image_elements
            if e.url
        ],
        "texts": [
            {**_box(e, layout), **_text_style(e, layout)}
            for e in layout.text_elements
            if e.content
        ],
    }


def _box(element: ImageElement | TextElement, layout: PageLayout) -> dict[str, float]:
    """Element bounding box as canvas percentages (centre anchor → top-left)."""
    canvas = layout.canvas
    bounds = element.bounds
    return {
        "id": element.id,
        "left": round(bounds.x / canvas.width * 100, 3),
        "top": round(bounds.y / canvas.height * 100, 3),
        "width": round(bounds.width / canvas.width * 100, 3),
        "height": round(bounds.height / canvas.height * 100, 3),
        "rotation": round(element.rotation_deg, 3),
        "z_index": element.z_index,
    }


def _text_style(element: TextElement, layout: PageLayout) -> dict[str, Any]:
    """Fit the narration into its frame; the template's size is the ceiling."""
    style = element.style or TextStyle()
    dpi = layout.canvas.dpi
    ceiling_px = max(MIN_FONT_SIZE, round(style.font_size_pt / 72 * dpi))
    metrics = calculate_optimal_font_size(
        element.content,
        max_width=element.width,
        max_height=element.height,
        max_font_size=ceiling_px,
        line_height_ratio=style.line_height,
    )
    if metrics.total_height > element.height:
        logger.warning(
            "  [page %s] narration overflows frame '%s' at %.0fpx",
            layout.page_number, element.id, metrics.font_size,
        )
    return {
        "content": element.content,
        "font_family": style.font_family,
        "font_size_mm": round(metrics.font_size / dpi * 25.4, 2),
        "line_height": style.line_height,
        "text_align": style.text_align,
        "color": style.color,
        "font_weight": style.font_weight,
        "letter_spacing": style.letter_spacing,
        "background_color": style.background_color,
    }


def _size_name(width_mm: float, height_mm: float) -> str:
    return "canvas-" + f"{width_mm}x{height_mm}".replace(".", "_")


# ---------------------------------------------------------------------------
# Image and font resolution
# ---------------------------------------------------------------------------

def _image_src(element: ImageElement, settings: Settings) -> str:
    """``file://`` URI for local illustrations; other references unchanged."""
    url = element.url
    if url.startswith(("http://", "https://", "data:", "file://")):
        return url
    path = Path(url)
    if not path.is_absolute():
        path = settings.project_dir / path
    if path.exists():
        return path.resolve().as_uri()
    logger.warning("Illustration not found: %s", path)
    return url


def _font_face_css(font_path: Path) -> str:
    """``@font-face`` rule embedding the configured narration font."""
    return (
        '@font-face {\n'
        '  font-family: "Narration";\n'
        f'  src: url({font_path.resolve().as_uri()}) format("truetype");\n'
        '}\n'
        '.text { font-family: "Narration", sans-serif !important; }'
    )


# ---------------------------------------------------------------------------
# Output path
# ---------------------------------------------------------------------------

def _output_path(settings: Settings, manifest: BookManifest) -> Path:
    slug = _slugify(manifest.story.title) or _slugify(manifest.book_id) or "storybook"
    return settings.output_dir / f"{slug}.pdf"


def _slugify(text: str) -> str:
    """Convert a title to a safe ASCII filename slug."""
    # Accented letters fold to their base letter ("é" -> "e"); other scripts drop out
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii").lower()
    text = re.sub(r"[^a-z0-9]+", "_", text)
    text = text.strip("_")
    return text[:50]
