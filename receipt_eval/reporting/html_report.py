"""HTML report generation for evaluation results."""

from pathlib import Path
from typing import Dict, List, Any
from datetime import datetime

from jinja2 import Environment, FileSystemLoader, select_autoescape


def get_color_class(value: float, thresholds: tuple = (0.9, 0.7)) -> str:
    """Get CSS color class based on value thresholds.

    Args:
        value: Value between 0 and 1
        thresholds: (high, medium) thresholds for color coding

    Returns:
        CSS class name: 'success', 'warning', or 'danger'
    """
    high, medium = thresholds
    if value >= high:
        return "success"
    elif value >= medium:
        return "warning"
    else:
        return "danger"


def prepare_summary_cards(report_data: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Prepare summary card data for the template.

    Args:
        report_data: Evaluation report dictionary

    Returns:
        List of card dictionaries with label, value, color_class, and detail
    """
    aggregated = report_data.get("aggregated", {})
    counts = report_data.get("counts", {})
    meta = report_data.get("meta", {})

    cards = []
    for key, label in [("f1", "F1 Score"), ("precision", "Precision"), ("recall", "Recall")]:
        value = aggregated.get(key, 0)
        cards.append({
            "label": label,
            "value": f"{value * 100:.1f}%",
            "color_class": get_color_class(value),
            "detail": "All labels",
        })

    cards.append({
        "label": "Documents",
        "value": str(len(meta.get("datapoints", []))),
        "color_class": "info",
        "detail": (
            f"TP {counts.get('true_positive', 0)} / "
            f"FP {counts.get('false_positive', 0)} / "
            f"FN {counts.get('false_negative', 0)}"
        ),
    })

    return cards


def prepare_label_chart_data(report_data: Dict[str, Any]) -> Dict[str, Any]:
    """Prepare chart data for metrics by label.

    Args:
        report_data: Evaluation report dictionary

    Returns:
        Dictionary with labels and data arrays for Chart.js
    """
    labels = []
    f1 = []
    precision = []
    recall = []

    for entry in report_data.get("by_label", []):
        labels.append(entry.get("label", ""))
        f1.append(round(entry.get("f1", 0) * 100, 1))
        precision.append(round(entry.get("precision", 0) * 100, 1))
        recall.append(round(entry.get("recall", 0) * 100, 1))

    return {
        "labels": labels,
        "f1": f1,
        "precision": precision,
        "recall": recall,
    }


def format_timestamp(iso_timestamp: str) -> str:
    """Format ISO timestamp for display.

    Args:
        iso_timestamp: ISO format timestamp string

    Returns:
        Human-readable date/time string
    """
    try:
        dt = datetime.fromisoformat(iso_timestamp)
        return dt.strftime("%Y-%m-%d %H:%M:%S")
    except (ValueError, TypeError):
        return iso_timestamp


def render_html_report(report_data: Dict[str, Any]) -> str:
    """Render the evaluation report as an HTML page.

    Args:
        report_data: Dictionary produced by Evaluation.to_dict()

    Returns:
        HTML document
    """
    # Get template directory
    template_dir = Path(__file__).parent.parent / "templates"

    # Set up Jinja2 environment
    env = Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=select_autoescape(['html', 'xml'])
    )
    env.filters["color_class"] = get_color_class

    template = env.get_template("report.html")

    meta = report_data.get("meta", {})
    template_data = {
        "dataset": meta.get("dataset", "Unknown"),
        "strategy": meta.get("strategy", "Unknown"),
        "model_name": meta.get("model", "Unknown"),
        "generated_at": format_timestamp(meta.get("timestamp", "")),
        "meta": meta,
        "aggregated": report_data.get("aggregated", {}),
        "by_label": report_data.get("by_label", []),
        "missed": report_data.get("missed", []),
        "summary_cards": prepare_summary_cards(report_data),
        "label_chart_data": prepare_label_chart_data(report_data),
    }

    return template.render(**template_data)


def generate_html_report(
    report_data: Dict[str, Any],
    output_path: Path
) -> None:
    """Generate HTML report from evaluation report data.

    Args:
        report_data: Dictionary produced by Evaluation.to_dict()
        output_path: Path to save the HTML file
    """
    html_content = render_html_report(report_data)

    # Write to file
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", encoding="utf-8") as f:
        f.write(html_content)
