"""Extension hooks run at the pipeline boundary."""

import logging
from typing import Any, Iterable, List, Optional

logger = logging.getLogger(__name__)


class Plugin:
    """Base class for extensions. Override only the hooks you need.

    ``on_config`` may return a replacement config; ``format_results`` may
    return text that replaces the built-in rendering.
    """

    name: Optional[str] = None

    def on_config(self, config):
        return None

    def format_results(self, result) -> Optional[str]:
        return None


class PluginSet:
    """An ordered set of plugins, invoked together."""

    def __init__(self, plugins: Optional[Iterable[Any]] = None):
        self.plugins = list(plugins or [])
        if not self.plugins:
            return
        logger.info(
            "Using plugins of %s",
            [getattr(plugin, "name", None) or type(plugin).__name__ for plugin in self.plugins],
        )

    def __len__(self) -> int:
        return len(self.plugins)

    def execute(self, method: str, *args) -> List[Any]:
        """Call ``method`` on every plugin defining it; collect the outputs."""
        outputs = []
        for plugin in self.plugins:
            hook = getattr(plugin, method, None)
            if callable(hook):
                outputs.append(hook(*args))
        return outputs
