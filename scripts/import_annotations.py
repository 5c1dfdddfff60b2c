"""Import annotated receipt scans into a dataset split."""

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console

# Add project root to path for imports
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from receipt_eval.config import load_config
from receipt_eval.dataset import import_annotated_receipts


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

console = Console()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Copy receipt images with BIO-tagged CSV annotations into data/<dataset>/<split>"
    )
    parser.add_argument("images", help="Directory with receipt images named <id>.<ext>")
    parser.add_argument("annotations", help="Directory with annotations named <id>.csv")
    parser.add_argument("--dataset", required=True, help="Target dataset name under data/")
    parser.add_argument("--split", default="eval", help="Target split (default: eval)")
    args = parser.parse_args()

    try:
        config = load_config()
        dataset_path = config.get_dataset_path(args.dataset)

        imported = import_annotated_receipts(
            Path(args.images),
            Path(args.annotations),
            dataset_path,
            split=args.split,
        )

        console.print(f"[green]Imported {imported} receipts into {dataset_path / args.split}[/green]")
        console.print("Run [bold]scripts/run_ocr.py[/bold] next to recognize their words.")

    except Exception as e:
        logger.error(f"Fatal error: {e}")
        import traceback
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
