"""Predict receipt fields with a prompt strategy and evaluate them."""

import argparse
import logging
import sys
import time
from datetime import datetime, timezone
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
from receipt_eval.dataset import Dataset, sample_data_points
from receipt_eval.evaluation import Evaluation, Metrics, Score, evaluate
from receipt_eval.models.completion import OpenAICompletionModel
from receipt_eval.pipeline import PredictionRun, predict_all
from receipt_eval.prompting import STRATEGIES, get_strategy
from receipt_eval.reporting import generate_html_report, get_evaluation_filename, save_evaluation


# Configure logging
logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Silence verbose HTTP client logging
logging.getLogger("openai").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)

# Rich console for pretty output
console = Console()


def color_for(value: float) -> str:
    """Get a rich color name for a ratio between 0 and 1."""
    if value >= 0.9:
        return "green"
    elif value >= 0.7:
        return "yellow"
    return "red"


def create_progress_panel(
    strategy_name: str,
    current_doc: str,
    run: PredictionRun,
    total: int,
    elapsed: float,
    progress: Progress
) -> Panel:
    """Create a rich panel with progress and the running scores."""
    processed = run.processed
    running = run.score.to_metrics()

    stats = Table.grid(padding=(0, 2))
    stats.add_column(style="cyan", justify="right")
    stats.add_column(style="white")

    stats.add_row("Last:", current_doc if current_doc else "Starting...")
    stats.add_row("Elapsed:", f"{elapsed:.1f}s")
    stats.add_row("Processed:", f"{processed} / {total} receipts")
    stats.add_row("Errors:", f"[red]{len(run.errors)}[/red]" if run.errors else "0")
    stats.add_row("Running F1:", f"[{color_for(running.f1)}]{running.f1:.3f}[/{color_for(running.f1)}]")
    stats.add_row("TP / FP / FN:", _format_counts(run.score))

    content = Table.grid(padding=1)
    content.add_column()
    content.add_row(progress)
    content.add_row(stats)

    return Panel(
        content,
        title=f"[bold blue]Predicting - {strategy_name}[/bold blue]",
        border_style="blue"
    )


def _format_counts(score: Score) -> str:
    return f"{score.true_positive} / {score.false_positive} / {score.false_negative}"


def print_results(evaluation: Evaluation) -> None:
    """Print aggregated and per-label metrics as a table."""
    table = Table(title="Evaluation Results", border_style="cyan")
    table.add_column("Scope", style="cyan")
    table.add_column("F1", justify="right")
    table.add_column("Recall", justify="right")
    table.add_column("Precision", justify="right")

    def add_row(scope: str, metrics: Metrics) -> None:
        table.add_row(
            scope,
            f"[{color_for(metrics.f1)}]{metrics.f1:.3f}[/{color_for(metrics.f1)}]",
            f"{metrics.recall:.3f}",
            f"{metrics.precision:.3f}",
        )

    add_row("aggregated", evaluation.aggregated)
    table.add_section()
    for entry in evaluation.by_label:
        add_row(entry.label.value, entry.metrics)

    console.print(table)
    console.print(
        f"Counts (TP / FP / FN): {_format_counts(evaluation.score)}, "
        f"missed entries: {len(evaluation.missed)}"
    )


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Predict receipt fields with a prompt strategy and evaluate them"
    )
    parser.add_argument(
        "--dataset",
        required=True,
        help="Dataset name under data/"
    )
    parser.add_argument(
        "--strategy",
        required=True,
        choices=sorted(STRATEGIES),
        help="Prompt strategy"
    )
    parser.add_argument(
        "--split",
        default="eval",
        help="Dataset split (default: eval)"
    )
    parser.add_argument(
        "--limit",
        type=int,
        help="Evaluate a seeded random sample of N receipts"
    )
    parser.add_argument(
        "--seed",
        default="42",
        help="Seed for sampling with --limit (default: 42)"
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        help="Maximum parallel completion requests (default: EVAL_CONCURRENCY or 16)"
    )
    parser.add_argument(
        "--no-html",
        action="store_true",
        help="Skip the HTML report"
    )
    args = parser.parse_args()

    try:
        config = load_config(require_openai=True)
        concurrency = args.concurrency or config.concurrency

        dataset = Dataset(args.dataset, config.get_dataset_path(args.dataset))
        strategy = get_strategy(args.strategy)
        model = OpenAICompletionModel(config)

        console.print(
            f"Performing evaluation for dataset [bold]{dataset.name}[/bold] "
            f"with strategy [bold]{strategy.name}[/bold] ({model.get_model_name()})"
        )

        data_points = dataset.list_data_points(args.split)
        console.print(f"Read in [bold]{len(data_points)}[/bold] receipts")

        if args.limit:
            data_points = sample_data_points(data_points, args.limit, args.seed)
            console.print(f"Limited to [bold]{len(data_points)}[/bold] receipts (seed {args.seed!r})")

        if not data_points:
            console.print("[yellow]No receipts to evaluate[/yellow]")
            return

        progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
        )
        task = progress.add_task("Predicting", total=len(data_points))
        start_time = time.time()

        with Live(
            create_progress_panel(strategy.name, "", PredictionRun(), len(data_points), 0, progress),
            console=console,
            refresh_per_second=4
        ) as live:

            def on_result(data_point, run: PredictionRun) -> None:
                progress.update(task, advance=1)
                live.update(create_progress_panel(
                    strategy.name, data_point.id, run, len(data_points),
                    time.time() - start_time, progress
                ))

            run = predict_all(data_points, strategy, model, concurrency=concurrency, on_result=on_result)

        if run.errors:
            document_id, error = run.errors[0]
            console.print(f"[red]{len(run.errors)} receipts failed, first: {document_id}[/red]")
            raise error

        predictions = sorted(run.predictions, key=lambda p: p.document_id)

        timestamp = datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
        meta = {
            "datapoints": [dp.id for dp in data_points],
            "dataset": dataset.name,
            "split": args.split,
            "limit": args.limit,
            "seed": args.seed,
            "strategy": strategy.name,
            "model": model.get_model_name(),
            "timestamp": timestamp,
        }
        evaluation = evaluate(predictions, meta=meta)

        console.print()
        print_results(evaluation)

        # Store the evaluation
        filename = get_evaluation_filename(dataset.name, strategy.name, timestamp)
        report_file = config.evaluations_path / filename
        report = save_evaluation(evaluation, report_file)

        console.print()
        console.print("[bold]Reports:[/bold]")
        console.print(f"  JSON: {report_file}")

        if not args.no_html:
            html_file = config.reports_path / Path(filename).with_suffix(".html").name
            generate_html_report(report, html_file)
            console.print(f"  HTML: {html_file}")

    except Exception as e:
        logger.error(f"Fatal error: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
