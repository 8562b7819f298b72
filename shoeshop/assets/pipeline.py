"""Asset pipeline: GLB → glTF → Draco-compressed glTF.

Usage:
    shoeshop-process-model public/shoe1.glb
    python -m shoeshop.assets.pipeline public/shoe1.glb

    # Every .glb in a directory (defaults to SHOESHOP_MODELS_DIR):
    shoeshop-process-models public/
    shoeshop-process-models public/ --continue-on-error
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path

from .. import config
from .compress import CompressionResult, DracoOptions, compress_gltf
from .convert import convert_glb_to_gltf

logger = logging.getLogger(__name__)


@dataclass
class BatchReport:
    processed: list[tuple[Path, CompressionResult]] = field(default_factory=list)
    failed: list[tuple[Path, Exception]] = field(default_factory=list)

    @property
    def degraded(self) -> list[tuple[Path, CompressionResult]]:
        return [(path, result) for path, result in self.processed if result.degraded]

    @property
    def ok(self) -> bool:
        return not self.failed


def run_model(glb_path: str | Path, options: DracoOptions | None = None) -> CompressionResult:
    """Convert one GLB file and compress the result.

    Conversion errors (ParseError, OSError) propagate; compression problems
    come back as a Fallback result.
    """
    gltf_path = convert_glb_to_gltf(glb_path)
    return compress_gltf(gltf_path, options)


def process_model(glb_path: str | Path, options: DracoOptions | None = None) -> Path:
    """Run the pipeline for one GLB file and return the final output path."""
    return run_model(glb_path, options).output_path


def process_directory(
    directory: str | Path,
    options: DracoOptions | None = None,
    continue_on_error: bool | None = None,
) -> BatchReport:
    """Run the pipeline over every .glb file in ``directory``, one at a time.

    By default the first conversion failure propagates and stops the batch.
    With ``continue_on_error`` the failure is recorded and the next file is
    processed.
    """
    directory = Path(directory)
    if continue_on_error is None:
        continue_on_error = config.BATCH_CONTINUE_ON_ERROR
    options = options or DracoOptions.from_config()

    report = BatchReport()
    glb_files = sorted(p for p in directory.iterdir() if p.is_file() and p.suffix == ".glb")
    if not glb_files:
        logger.info("No GLB files found in %s", directory)
        return report

    logger.info("Found %d GLB file(s) to process.", len(glb_files))
    for glb_path in glb_files:
        logger.info("Processing %s...", glb_path.name)
        try:
            result = run_model(glb_path, options)
        except Exception as e:
            if not continue_on_error:
                raise
            logger.error("Failed to process %s: %s", glb_path.name, e)
            report.failed.append((glb_path, e))
            continue
        report.processed.append((glb_path, result))
        logger.info("Successfully processed %s -> %s", glb_path.name, result.output_path.name)

    if report.ok:
        logger.info("All models processed successfully.")
    else:
        logger.warning("%d of %d model(s) failed.", len(report.failed), len(glb_files))
    return report


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def _setup_logging():
    logging.basicConfig(level=config.LOG_LEVEL, format="%(name)s %(levelname)s: %(message)s")


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(description="Convert a GLB model to glTF and Draco-compress it")
    parser.add_argument("path", nargs="?", help="Path to the GLB file")
    args = parser.parse_args(argv)

    if not args.path:
        print("Please provide a path to a GLB file.", file=sys.stderr)
        sys.exit(1)

    _setup_logging()
    try:
        output_path = process_model(args.path)
    except Exception as e:
        print(f"Model processing failed: {e}", file=sys.stderr)
        sys.exit(1)
    print(output_path)


def batch_main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(description="Process every GLB model in a directory")
    parser.add_argument(
        "directory",
        nargs="?",
        default=str(config.MODELS_DIR),
        help="Directory containing .glb files",
    )
    parser.add_argument(
        "--continue-on-error",
        action="store_true",
        default=config.BATCH_CONTINUE_ON_ERROR,
        help="Keep going when a file fails to convert",
    )
    args = parser.parse_args(argv)

    _setup_logging()
    try:
        report = process_directory(args.directory, continue_on_error=args.continue_on_error)
    except Exception as e:
        print(f"Error processing models: {e}", file=sys.stderr)
        sys.exit(1)

    for _, result in report.processed:
        print(result.output_path)
    if not report.ok:
        sys.exit(1)


if __name__ == "__main__":
    main()
