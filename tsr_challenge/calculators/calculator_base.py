import numpy as np
import pandas as pd
from typing import Optional, Any, Sequence


class CalculatorBase:
    """Base class providing numeric cleaning, discounting and result helpers."""

    def _clean_result(self, value: Any) -> Optional[float]:
        """Clean result (None/NaN/inf -> None)."""
        if value is None or pd.isna(value) or not np.isfinite(value):
            return None
        return float(value)

    def _safe_divide(self, numerator: Optional[float], denominator: Optional[float]) -> Optional[float]:
        """Divide two values, returning None on missing inputs or a zero denominator."""
        if numerator is None or denominator is None or denominator == 0:
            return None
        return self._clean_result(numerator / denominator)

    def _discount_factors(self, rate: float, periods: int) -> np.ndarray:
        """End-of-year discount factors for years 1..periods."""
        years = np.arange(1, periods + 1)
        return 1.0 / np.power(1.0 + rate, years)

    def _present_value(self, flows: Sequence[float], rate: float) -> float:
        """Present value of end-of-year flows starting one year out."""
        flows = np.asarray(flows, dtype=float)
        if flows.size == 0:
            return 0.0
        return float(np.sum(flows * self._discount_factors(rate, flows.size)))

    def _store_result(self, key: str, value: Any) -> Optional[float]:
        """Store cleaned result in calculations dict."""
        cleaned = self._clean_result(value)
        if cleaned is not None:
            if not hasattr(self, 'calculations'):
                self.calculations = {}
            self.calculations[key] = cleaned
        return cleaned

