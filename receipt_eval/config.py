"""Configuration module for the receipt evaluation project."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv
import os


DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_CONCURRENCY = 16


@dataclass
class Config:
    """Configuration settings for the receipt evaluation project."""
    data_path: Path
    evaluations_path: Path
    reports_path: Path
    azure_endpoint: Optional[str] = None
    azure_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    openai_model: str = DEFAULT_OPENAI_MODEL
    concurrency: int = DEFAULT_CONCURRENCY

    def get_dataset_path(self, dataset: str) -> Path:
        """Get the directory of a named dataset."""
        return self.data_path / dataset


def get_project_root(start: Optional[Path] = None) -> Path:
    """Find project root by looking for the data directory."""
    current = (start or Path.cwd()).resolve()

    # Walk up the directory tree looking for data/
    for _ in range(10):  # Limit search depth
        if (current / "data").is_dir():
            return current
        parent = current.parent
        if parent == current:  # Reached filesystem root
            break
        current = parent

    raise RuntimeError(
        "Could not find project root. "
        "Make sure a data/ directory exists in the project directory."
    )


def load_config(
    require_azure: bool = False,
    require_openai: bool = False,
    project_root: Optional[Path] = None
) -> Config:
    """Load configuration from environment variables.

    Args:
        require_azure: Fail if the Azure Document Intelligence credentials are missing
        require_openai: Fail if the OpenAI API key is missing
        project_root: Override the detected project root

    Returns:
        Config: Configuration object with all settings.

    Raises:
        RuntimeError: If required environment variables are missing.
    """
    # Load .env file
    project_root = project_root or get_project_root()
    env_path = project_root / ".env"

    if env_path.exists():
        load_dotenv(env_path)
    else:
        load_dotenv()  # Try default locations

    azure_key = os.getenv("AZURE_FORM_RECOGNIZER_KEY")
    azure_endpoint = os.getenv("AZURE_FORM_RECOGNIZER_ENDPOINT")
    openai_api_key = os.getenv("OPENAI_API_KEY")

    # Validate required variables
    missing = []
    if require_azure and not azure_key:
        missing.append("AZURE_FORM_RECOGNIZER_KEY")
    if require_azure and not azure_endpoint:
        missing.append("AZURE_FORM_RECOGNIZER_ENDPOINT")
    if require_openai and not openai_api_key:
        missing.append("OPENAI_API_KEY")

    if missing:
        raise RuntimeError(
            f"Missing required environment variables: {', '.join(missing)}. "
            f"Please create a .env file in {project_root} with these variables."
        )

    concurrency_value = os.getenv("EVAL_CONCURRENCY", str(DEFAULT_CONCURRENCY))
    try:
        concurrency = int(concurrency_value)
    except ValueError:
        raise RuntimeError(f"EVAL_CONCURRENCY must be an integer, got {concurrency_value!r}")
    if concurrency < 1:
        raise RuntimeError(f"EVAL_CONCURRENCY must be at least 1, got {concurrency}")

    # Build paths
    data_path = project_root / "data"
    evaluations_path = project_root / "evaluations"
    reports_path = project_root / "reports"

    # Ensure directories exist
    evaluations_path.mkdir(parents=True, exist_ok=True)
    reports_path.mkdir(parents=True, exist_ok=True)

    return Config(
        data_path=data_path,
        evaluations_path=evaluations_path,
        reports_path=reports_path,
        azure_endpoint=azure_endpoint,
        azure_key=azure_key,
        openai_api_key=openai_api_key,
        openai_model=os.getenv("OPENAI_MODEL", DEFAULT_OPENAI_MODEL),
        concurrency=concurrency,
    )
