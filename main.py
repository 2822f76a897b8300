#!/usr/bin/env python3
"""
koma-fill — CLI Entry Point
============================

Usage examples::

    # Four panels, right-to-left vertical page (config.yaml defaults)
    python main.py p1.png p2.png p3.png p4.png

    # Square page, western reading order, with speech bubbles
    python main.py p*.png --layout-format square --reading-order leftToRight \\
                   -b bubbles.yaml

    # Print-ready PDF plus thumbnail
    python main.py p*.png --format pdf --resolution print --thumbnail -o output/ch1
"""

import argparse
import logging
import sys
from pathlib import Path

# Ensure project root is on sys.path for imports
PROJECT_ROOT = Path(__file__).resolve().parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="koma-fill — Compose panel images into a comic page",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Examples:
  python main.py p1.png p2.png p3.png p4.png
  python main.py p*.png --layout-format horizontal --reading-order japanese -b bubbles.json
  python main.py p*.png --format jpg --compression high -o output/page_01
""",
    )

    # ── Required ─────────────────────────────────────────────────────
    parser.add_argument(
        "images",
        nargs="+",
        help="Panel images in reading order (first panel first)",
    )

    # ── Inputs ───────────────────────────────────────────────────────
    parser.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        help="Path to config YAML (default: $KOMA_FILL_CONFIG or config.yaml)",
    )
    parser.add_argument(
        "-b", "--bubbles",
        type=str,
        default=None,
        help="YAML/JSON file with a list of speech bubbles",
    )

    # ── Layout overrides ─────────────────────────────────────────────
    parser.add_argument(
        "--layout-format",
        choices=["vertical", "horizontal", "square"],
        default=None,
        help="Grid format (overrides layout.format)",
    )
    parser.add_argument(
        "--reading-order",
        type=str,
        default=None,
        help="rightToLeft / leftToRight (japanese / western also accepted)",
    )

    # ── Export ───────────────────────────────────────────────────────
    parser.add_argument(
        "-o", "--output-dir",
        type=str,
        default=None,
        help="Output directory (default: output.dir from config)",
    )
    parser.add_argument(
        "--name",
        type=str,
        default="page",
        help="Base file name of the export (default: page)",
    )
    parser.add_argument(
        "--format",
        choices=["png", "jpg", "pdf"],
        default=None,
        help="Export format (default: export.format from config)",
    )
    parser.add_argument(
        "--compression",
        choices=["low", "medium", "high"],
        default=None,
    )
    parser.add_argument(
        "--resolution",
        choices=["web", "print"],
        default=None,
        help="web = 72 dpi, print = 300 dpi",
    )
    parser.add_argument("--title", type=str, default=None, help="PDF title")
    parser.add_argument("--author", type=str, default=None, help="PDF author")
    parser.add_argument(
        "--thumbnail",
        action="store_true",
        help="Also write thumbnail.png",
    )
    parser.add_argument(
        "--svg",
        action="store_true",
        help="Also write the border/bubble overlay as overlay.svg",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug-level logging",
    )

    return parser.parse_args(argv)


def setup_logging(verbose: bool = False):
    """Configure logging for the CLI."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s │ %(name)-30s │ %(levelname)-5s │ %(message)s",
        datefmt="%H:%M:%S",
    )
    # Silence noisy libraries
    for lib in ("PIL", "reportlab"):
        logging.getLogger(lib).setLevel(logging.WARNING)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose)

    log = logging.getLogger("main")
    log.info("=" * 60)
    log.info("  koma-fill Page Composer")
    log.info("=" * 60)
    log.info(f"  Panels:     {len(args.images)}")
    log.info(f"  Bubbles:    {args.bubbles or '(none)'}")
    log.info(f"  Format:     {args.format or '(config)'}")
    log.info(f"  Output:     {args.output_dir or '(config)'}")
    log.info(f"  Config:     {args.config or '(default)'}")
    log.info("=" * 60)

    # Validate panel images exist before any work starts
    missing = [p for p in args.images if not Path(p).is_file()]
    if missing:
        for path in missing:
            log.error(f"Panel image not found: {path}")
        return 1

    from layout_models.errors import AppError
    from layout_engine.config import load_bubbles
    from layout_engine.export_service import ExportOptions
    from layout_engine.koma_pipeline import KomaPipeline

    try:
        pipeline = KomaPipeline.from_config(args.config)
        bubbles = load_bubbles(args.bubbles) if args.bubbles else []

        page_config = pipeline.page_config.with_overrides(
            format=args.layout_format,
            reading_order=args.reading_order,
            total_panels=len(args.images),
        )

        export_cfg = dict(pipeline.export_defaults)
        for key in ("format", "compression", "resolution", "title", "author"):
            value = getattr(args, key)
            if value is not None:
                export_cfg[key] = value

        output = pipeline.run(
            image_paths=args.images,
            bubbles=bubbles,
            output_dir=args.output_dir,
            filename=args.name,
            export_options=ExportOptions.from_dict(export_cfg),
            page_config=page_config,
            thumbnail=args.thumbnail,
            svg=args.svg,
        )
    except (AppError, FileNotFoundError) as exc:
        log.error(str(exc))
        return 1

    log.info(f"✅ Page saved to: {output['export_path']} "
             f"({output['file_size']} bytes, {output['dpi']} dpi)")
    if output.get("thumbnail_path"):
        log.info(f"Thumbnail: {output['thumbnail_path']}")
    if output.get("svg_path"):
        log.info(f"Overlay SVG: {output['svg_path']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
