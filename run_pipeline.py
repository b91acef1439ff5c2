#!/usr/bin/env python3
"""Run the storybook layout pipeline end-to-end.

Usage:
    python run_pipeline.py                  # run all stages
    python run_pipeline.py --from-stage 3   # start from stage 3 (load earlier caches)
    python run_pipeline.py --from-stage 5   # render the PDF from cached layouts

Settings come from the environment (prefix ``SBL_``) or a ``.env`` file;
``SBL_BOOK_ID`` is required.
"""
import argparse
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from settings import Settings
from models.layout import BookLayout
from models.manifest import BookManifest
from pipeline import stage1_ingest, stage2_layout, stage3_spreads, stage4_masks, stage5_render

logger = logging.getLogger("run_pipeline")


def _load_json(path: Path, model):
    data = json.loads(path.read_text(encoding="utf-8"))
    return model.model_validate(data)


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--from-stage", type=int, default=1, dest="from_stage", choices=range(1, 6),
                        help="Start from this stage number (1-5); earlier stages load from cache")
    parser.add_argument("--skip-pdf", action="store_true", dest="skip_pdf",
                        help="Stop after the mask stage")
    args = parser.parse_args()

    settings = Settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%H:%M:%S",
    )
    cache = settings.cache_dir  # data/.cache

    if args.from_stage <= 1:
        logger.info("=== Stage 1: Ingest ===")
        manifest = stage1_ingest.run(settings)
    else:
        logger.info("=== Stage 1: loading from cache ===")
        manifest = _load_json(cache / "manifest.json", BookManifest)

    if args.from_stage <= 2:
        logger.info("=== Stage 2: Page layout ===")
        book_layout = stage2_layout.run(settings, manifest)
    else:
        logger.info("=== Stage 2: loading from cache ===")
        book_layout = _load_json(cache / "layouts.json", BookLayout)

    if args.from_stage <= 3:
        logger.info("=== Stage 3: Spreads ===")
        stage3_spreads.run(settings, manifest, book_layout)

    if args.from_stage <= 4:
        logger.info("=== Stage 4: Masks ===")
        stage4_masks.run(settings, manifest)

    if args.skip_pdf:
        logger.info("=== Done (PDF skipped) ===")
        return

    logger.info("=== Stage 5: Render PDF ===")
    output_path = stage5_render.run(settings, manifest, book_layout)

    logger.info("=== Done → %s ===", output_path)


if __name__ == "__main__":
    main()
