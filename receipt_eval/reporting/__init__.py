# Reporting package
from .evaluation_file import (
    round_floats,
    get_evaluation_filename,
    save_evaluation,
    load_evaluation,
)
from .html_report import generate_html_report, render_html_report
