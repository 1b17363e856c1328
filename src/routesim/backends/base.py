from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict


class Backend(ABC):
    """Runs one simulation described by an effective config dict."""

    @abstractmethod
    def run(self, config: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError
