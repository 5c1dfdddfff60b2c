"""Run OCR over every receipt of a dataset split."""

import argparse
import json
import logging
import sys
import time
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn, TimeElapsedColumn
from rich.table import Table

# Add project root to path for imports
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from receipt_eval.config import load_config
from receipt_eval.dataset import OCR_FILE, DataPoint, Dataset
from receipt_eval.models.document_intelligence import DocumentIntelligenceModel


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Silence verbose Azure SDK HTTP logging
logging.getLogger("azure").setLevel(logging.WARNING)
logging.getLogger("azure.core.pipeline.policies.http_logging_policy").setLevel(logging.WARNING)

# Rich console for pretty output
console = Console()

RAW_RESPONSE_FILE = "ocr-raw.json"
ERROR_LOG_FILE = "errors.log"


def create_progress_panel(
    model_name: str,
    current_doc: str,
    processed: int,
    total: int,
    errors: int,
    elapsed: float,
    progress: Progress
) -> Panel:
    """Create a rich panel showing processing progress."""
    speed = (processed / elapsed * 60) if elapsed > 0 and processed > 0 else 0

    stats = Table.grid(padding=(0, 2))
    stats.add_column(style="cyan", justify="right")
    stats.add_column(style="white")

    stats.add_row("Current:", current_doc if current_doc else "Starting...")
    stats.add_row("Elapsed:", f"{elapsed:.1f}s")
    stats.add_row("Processed:", f"{processed} / {total} receipts")
    stats.add_row("Errors:", f"[red]{errors}[/red]" if errors > 0 else "0")
    stats.add_row("Speed:", f"{speed:.1f} receipts/min")

    content = Table.grid(padding=1)
    content.add_column()
    content.add_row(progress)
    content.add_row(stats)

    return Panel(
        content,
        title=f"[bold blue]OCR Processing - {model_name}[/bold blue]",
        border_style="blue"
    )


def filter_unprocessed(data_points: list) -> list:
    """Keep only receipts that have no OCR result yet."""
    return [dp for dp in data_points if not dp.has_file(OCR_FILE)]


def save_raw_response(raw_response: dict, data_point: DataPoint) -> None:
    """Save the provider response next to the receipt."""
    content = json.dumps(raw_response, indent=2, ensure_ascii=False)
    data_point.save_file(RAW_RESPONSE_FILE, content.encode("utf-8"))


def log_error(data_point: DataPoint, error: Exception, dataset_path: Path) -> None:
    """Append a processing error to the dataset's error log.

    Args:
        data_point: Receipt that failed
        error: Exception that occurred
        dataset_path: Directory of the dataset
    """
    error_log = dataset_path / ERROR_LOG_FILE
    timestamp = datetime.now().isoformat()

    with open(error_log, "a", encoding="utf-8") as f:
        f.write(f"{timestamp} | {data_point.id} | {type(error).__name__}: {error}\n")

    logger.error(f"Error processing {data_point.id}: {error}")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Recognize the words of every receipt in a dataset split"
    )
    parser.add_argument(
        "--dataset",
        default="custom",
        help="Dataset name under data/ (default: custom)"
    )
    parser.add_argument(
        "--split",
        default="eval",
        help="Dataset split (default: eval)"
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Reprocess all receipts, even if OCR results already exist"
    )
    parser.add_argument(
        "--limit",
        type=int,
        help="Process only N receipts"
    )
    parser.add_argument(
        "--no-raw",
        action="store_true",
        help="Skip saving raw API responses (raw is saved by default)"
    )
    args = parser.parse_args()

    try:
        console.print("[dim]Loading configuration...[/dim]")
        config = load_config(require_azure=True)

        dataset_path = config.get_dataset_path(args.dataset)
        dataset = Dataset(args.dataset, dataset_path)

        model = DocumentIntelligenceModel(config)
        model_name = model.get_model_name()

        data_points = dataset.list_data_points(args.split)
        console.print(f"Found [bold]{len(data_points)}[/bold] receipts in {args.dataset}/{args.split}")

        # Skip already-processed receipts by default (unless --force)
        if not args.force:
            data_points = filter_unprocessed(data_points)
            console.print(f"[bold]{len(data_points)}[/bold] receipts remaining to process")
        else:
            console.print("[yellow]Force mode: reprocessing all receipts[/yellow]")

        if args.limit:
            data_points = data_points[:args.limit]
            console.print(f"Limited to [bold]{len(data_points)}[/bold] receipts")

        if not data_points:
            console.print("[green]No receipts to process - all up to date![/green]")
            return

        processed = 0
        errors = 0
        word_count = 0

        progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
        )
        task = progress.add_task("Processing", total=len(data_points))

        loop_start_time = time.time()

        with Live(
            create_progress_panel(model_name, "", 0, len(data_points), 0, 0, progress),
            console=console,
            refresh_per_second=4
        ) as live:
            for data_point in data_points:
                elapsed = time.time() - loop_start_time
                live.update(create_progress_panel(
                    model_name, data_point.id, processed, len(data_points),
                    errors, elapsed, progress
                ))

                try:
                    segments = model.process_document(data_point.image_path())
                    data_point.save_segments(segments)
                    word_count += len(segments)
                    processed += 1

                    if not args.no_raw:
                        save_raw_response(model.get_last_raw_response_dict(), data_point)

                except Exception as e:
                    log_error(data_point, e, dataset_path)
                    errors += 1

                progress.update(task, advance=1)

            elapsed = time.time() - loop_start_time
            live.update(create_progress_panel(
                model_name, "Complete!", processed, len(data_points),
                errors, elapsed, progress
            ))

        # Summary table
        console.print()
        summary_table = Table(title="OCR Results", border_style="green")
        summary_table.add_column("Metric", style="cyan")
        summary_table.add_column("Value", style="white")

        summary_table.add_row("Receipts Processed", f"{processed}")
        summary_table.add_row("Errors", f"[red]{errors}[/red]" if errors > 0 else "0")
        summary_table.add_row("Words Kept", f"{word_count}")
        summary_table.add_row("Total Time", f"{elapsed:.1f}s")

        console.print(summary_table)

        if errors:
            console.print(f"[yellow]See {dataset_path / ERROR_LOG_FILE} for details[/yellow]")

    except Exception as e:
        logger.error(f"Fatal error: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
