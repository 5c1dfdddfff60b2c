"""Show the reconstructed lines and prompt of a single receipt."""

import argparse
import json
import sys
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

# Add project root to path for imports
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from receipt_eval.config import load_config
from receipt_eval.dataset import DataPoint, Dataset
from receipt_eval.evaluation import KNOWN_LABELS, ground_truth_to_record, match_label, prediction_to_record
from receipt_eval.layout import lines_to_text, sort_to_reading_order, split_to_lines
from receipt_eval.prompting import STRATEGIES, get_strategy


console = Console()


def find_data_point(dataset: Dataset, split: str, document_id: str = None) -> DataPoint:
    """Get a receipt by id, or the first receipt of the split.

    Raises:
        FileNotFoundError: If the receipt does not exist
    """
    data_points = dataset.list_data_points(split)
    if not data_points:
        raise FileNotFoundError(f"No receipts found in {dataset.path / split}")

    if document_id is None:
        return data_points[0]

    for data_point in data_points:
        if data_point.id == document_id:
            return data_point

    raise FileNotFoundError(f"Receipt {document_id!r} not found in {dataset.name}/{split}")


def build_comparison_table(predicted: dict, target: dict) -> Table:
    """Build a label by label table of predicted and ground truth values.

    Values are OCR and model text, so they are escaped before rendering.
    """
    table = Table(title="Completion vs Ground Truth", border_style="cyan")
    table.add_column("Label", style="cyan")
    table.add_column("Predicted")
    table.add_column("Ground Truth")
    table.add_column("Match")

    for label in KNOWN_LABELS:
        p, t = predicted.get(label), target.get(label)
        if not p and not t:
            status = "[dim]-[/dim]"
        elif p and t and match_label(label, p, t):
            status = "[green]OK[/green]"
        else:
            status = "[red]MISS[/red]"
        table.add_row(label.value, escape(p or ""), escape(t or ""), status)

    return table


def display_comparison(data_point: DataPoint, completion: str, strategy) -> None:
    """Compare a completion against the ground truth, label by label."""
    predicted = prediction_to_record(strategy.parse_completion(completion))
    target = ground_truth_to_record(data_point.load_ground_truth())

    console.print(build_comparison_table(predicted, target))


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Inspect layout reconstruction and prompt for one receipt"
    )
    parser.add_argument("--dataset", required=True, help="Dataset name under data/")
    parser.add_argument("--id", dest="document_id", help="Receipt id (default: first in split)")
    parser.add_argument("--split", default="eval", help="Dataset split (default: eval)")
    parser.add_argument(
        "--strategy",
        default="simple",
        choices=sorted(STRATEGIES),
        help="Prompt strategy (default: simple)"
    )
    parser.add_argument(
        "--completion",
        help="File with a model completion to parse and compare against the ground truth"
    )
    args = parser.parse_args()

    try:
        config = load_config()
        dataset = Dataset(args.dataset, config.get_dataset_path(args.dataset))
        data_point = find_data_point(dataset, args.split, args.document_id)
        strategy = get_strategy(args.strategy)

        console.print(f"\nReceipt: [bold]{data_point.id}[/bold] ({', '.join(data_point.list_files())})")

        segments = data_point.load_segments()
        lines = lines_to_text(split_to_lines(sort_to_reading_order(segments)))
        console.print(f"{len(segments)} words in {len(lines)} lines")
        console.print(Panel(escape("\n".join(lines)), title="Reading order", border_style="blue"))

        console.print(Panel(escape(strategy.get_prompt(segments)), title=f"Prompt ({strategy.name})", border_style="green"))

        ground_truth = data_point.load_ground_truth()
        console.print(Panel(escape(json.dumps(ground_truth, indent=2, ensure_ascii=False)), title="Ground truth"))

        if args.completion:
            completion = Path(args.completion).read_text(encoding="utf-8")
            display_comparison(data_point, completion, strategy)

    except Exception as e:
        console.print(f"[red]ERROR: {e}[/red]")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
