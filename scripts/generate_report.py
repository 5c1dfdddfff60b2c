"""Generate HTML reports from stored evaluation files."""

import argparse
import sys
from pathlib import Path

# Add project root to path for imports
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from receipt_eval.config import load_config
from receipt_eval.reporting import generate_html_report, load_evaluation


def find_latest_evaluation(evaluations_path: Path) -> Path:
    """Get the most recently written evaluation file.

    Raises:
        FileNotFoundError: If no evaluation exists yet
    """
    candidates = sorted(evaluations_path.glob("eval-*.json"), key=lambda p: p.stat().st_mtime)
    if not candidates:
        raise FileNotFoundError(f"No evaluation files found in {evaluations_path}")
    return candidates[-1]


def print_summary(report: dict) -> None:
    """Print formatted summary of an evaluation report.

    Args:
        report: Evaluation report dictionary
    """
    meta = report.get("meta", {})
    aggregated = report.get("aggregated", {})

    print("\n" + "=" * 60)
    print("Receipt Extraction Evaluation")
    print("=" * 60)
    print(f"Dataset:   {meta.get('dataset', '-')}")
    print(f"Strategy:  {meta.get('strategy', '-')}")
    print(f"Model:     {meta.get('model', '-')}")
    print(f"Generated: {meta.get('timestamp', '-')}")
    print(f"Receipts:  {len(meta.get('datapoints', []))}")

    print("\n" + "-" * 60)
    print(f"  {'Scope':<12} | {'F1':>7} | {'Recall':>7} | {'Precision':>9}")
    print(f"  {'-'*12} | {'-'*7} | {'-'*7} | {'-'*9}")
    print(
        f"  {'aggregated':<12} | {aggregated.get('f1', 0):>7.3f} | "
        f"{aggregated.get('recall', 0):>7.3f} | {aggregated.get('precision', 0):>9.3f}"
    )
    for entry in report.get("by_label", []):
        print(
            f"  {entry['label']:<12} | {entry['f1']:>7.3f} | "
            f"{entry['recall']:>7.3f} | {entry['precision']:>9.3f}"
        )

    missed = report.get("missed", [])
    print("\n" + "-" * 60)
    print(f"Missed entries: {len(missed)}")
    for entry in missed[:10]:
        print(
            f"  {entry['id']:<20} {entry['label']:<8} "
            f"expected {entry['groundTruth']!r}, got {entry['predicted']!r}"
        )
    print("=" * 60)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Generate an HTML report from an evaluation file"
    )
    parser.add_argument(
        "evaluation",
        nargs="?",
        help="Evaluation JSON file (default: latest in evaluations/)"
    )
    parser.add_argument(
        "--output",
        help="Output file path (default: reports/<evaluation name>.html)"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Don't print summary to console"
    )
    args = parser.parse_args()

    try:
        config = load_config()

        if args.evaluation:
            evaluation_file = Path(args.evaluation)
        else:
            evaluation_file = find_latest_evaluation(config.evaluations_path)

        print(f"Loading evaluation: {evaluation_file}")
        report = load_evaluation(evaluation_file)

        if args.output:
            html_file = Path(args.output)
        else:
            html_file = config.reports_path / evaluation_file.with_suffix(".html").name

        generate_html_report(report, html_file)

        if not args.quiet:
            print_summary(report)

        print(f"\nHTML report saved to: {html_file}")

    except Exception as e:
        print(f"ERROR: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
