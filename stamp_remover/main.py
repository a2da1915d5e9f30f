"""
Stamp Remover Batch Runner

Removes bottom-right stamps from image files and writes cleaned PNGs.
"""

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, TextColumn

from .config import get_settings
from .metrics import push_metrics_now, start_metrics_server
from .pipeline.watermark_remover import WatermarkRemover

logger = logging.getLogger(__name__)
console = Console()


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Remove a near-white stamp from the bottom-right corner of images."
    )

    parser.add_argument(
        "images",
        nargs="+",
        type=Path,
        help="Image files to clean (JPEG, PNG, WebP)"
    )

    parser.add_argument(
        "-o", "--output-dir",
        type=Path,
        help="Directory for cleaned images (default: next to each input)"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging"
    )

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Clean every image given on the command line."""
    args = parse_args(argv)
    settings = get_settings()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )

    if settings.metrics_port:
        start_metrics_server(settings.metrics_port, worker_id=settings.worker_id)

    remover = WatermarkRemover(settings.thresholds())

    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        console=console,
    ) as progress:
        task = progress.add_task("Removing stamps", total=len(args.images))

        def on_progress(current: int, total: int, message: str):
            progress.update(task, completed=current - 1, description=message)

        items = remover.remove_batch(
            args.images,
            output_dir=args.output_dir,
            suffix=settings.output_suffix,
            progress_callback=on_progress,
        )
        progress.update(task, completed=len(args.images), description="Done")

    push_metrics_now()

    cleaned = sum(1 for item in items if item.watermark_detected)
    failed = [item for item in items if item.error]
    console.print(
        f"[bold green]{len(items) - len(failed)} written[/bold green], "
        f"{cleaned} stamps removed, "
        f"[bold red]{len(failed)} failed[/bold red]"
    )
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
