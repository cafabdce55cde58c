import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from tsr_challenge.core.config import CatalogConfig
from tsr_challenge.core.decisions import DEFAULT_DECISION_ROWS
from tsr_challenge.core.types import Decision

logger = logging.getLogger(__name__)


class DecisionDataProvider:
    """Provides decision catalog rows from a JSON file or the built-in catalog.

    Rows are loaded once and cached; call `clear_cache()` to force a reload.
    """

    def __init__(
        self,
        config: Optional[CatalogConfig] = None,
        row_loader: Optional[Callable[[Path], List[Dict[str, Any]]]] = None,
    ):
        """Initialize with optional catalog config. row_loader is for testing."""
        self.config = config or CatalogConfig()
        self._row_loader: Callable[[Path], List[Dict[str, Any]]] = row_loader or self._read_json
        self._decisions: Optional[List[Decision]] = None
        self.load_errors: List[str] = []

    @staticmethod
    def _read_json(path: Path) -> List[Dict[str, Any]]:
        with open(path, 'r', encoding='utf-8') as fh:
            payload = json.load(fh)
        if isinstance(payload, dict):
            payload = payload.get('decisions', [])
        if not isinstance(payload, list):
            raise ValueError(f"Catalog file {path} must contain a list of decisions")
        return payload

    @property
    def source(self) -> str:
        path = self.config.catalog_path
        return str(path) if path is not None else "built-in"

    def get_rows(self) -> List[Dict[str, Any]]:
        """Raw catalog rows (dicts) from the configured source."""
        path = self.config.catalog_path
        if path is None:
            return [dict(row) for row in DEFAULT_DECISION_ROWS]
        rows = self._row_loader(path)
        logger.debug("Loaded catalog rows", extra={"source": str(path), "row_count": len(rows)})
        return rows

    def get_decisions(self) -> List[Decision]:
        """Decisions in catalog order (cached after first load).

        Rows that cannot be turned into a Decision are skipped and described
        in `load_errors`.
        """
        if self._decisions is None:
            decisions: List[Decision] = []
            self.load_errors = []
            for index, row in enumerate(self.get_rows()):
                try:
                    decisions.append(Decision.from_dict(row))
                except (TypeError, ValueError) as exc:
                    self.load_errors.append(f"Row #{index}: {exc}")
                    logger.warning("Skipping malformed catalog row", extra={"row": index, "error": str(exc)})
            self._decisions = decisions
            logger.info(
                "Decision catalog loaded",
                extra={"source": self.source, "decisions": len(decisions), "skipped": len(self.load_errors)},
            )
        return list(self._decisions)

    def clear_cache(self) -> None:
        self._decisions = None
        self.load_errors = []
        logger.debug("Cleared DecisionDataProvider cache")
