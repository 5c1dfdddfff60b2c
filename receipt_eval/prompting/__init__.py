# Prompt strategies
from typing import Dict, Type

from .base import PromptStrategy
from .simple import SimplePromptStrategy
from .layout import LayoutPromptStrategy


STRATEGIES: Dict[str, Type[PromptStrategy]] = {
    SimplePromptStrategy.name: SimplePromptStrategy,
    LayoutPromptStrategy.name: LayoutPromptStrategy,
}


def get_strategy(name: str) -> PromptStrategy:
    """Instantiate a prompt strategy by name.

    Raises:
        ValueError: If the name is unknown
    """
    if name not in STRATEGIES:
        raise ValueError(f"Unknown strategy: {name!r}, choose one of: {', '.join(STRATEGIES)}")
    return STRATEGIES[name]()
