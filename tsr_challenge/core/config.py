import os
from pathlib import Path
from dotenv import load_dotenv
from dataclasses import dataclass
from typing import Optional, Dict, Any, Callable, Tuple

load_dotenv()


class EnvConfig:
    """Small helper for reading and casting environment variables.

    Usage: EnvConfig.get('GAME_TEAM_COUNT', cast=int, aliases=['TEAM_COUNT'])
    """

    @staticmethod
    def get(name: str, default: Any = None, cast: Optional[Callable] = None, aliases: Optional[list] = None):
        aliases = aliases or []
        for key in (name, *aliases):
            val = os.getenv(key)
            if val is not None:
                if cast is not None:
                    try:
                        return cast(val)
                    except Exception as exc:  # keep error explicit
                        raise ValueError(f"Invalid value for {key}: {exc}")
                return val
        return default


# Debug flag
DEBUG = EnvConfig.get('DEBUG', default='False', cast=lambda v: v.lower() == 'true')


@dataclass
class BaseConfig:
    """Mixin-like helper for dataclasses that load from envs and validate."""

    @classmethod
    def _env(cls, name: str, default: Any = None, cast: Optional[Callable] = None, aliases: Optional[list] = None):
        return EnvConfig.get(name, default=default, cast=cast, aliases=aliases)

    def validate(self, required: bool = True):
        """Default no-op; override in subclasses with required flag."""
        return None


@dataclass
class GameConfig(BaseConfig):
    team_count: int = 10
    round_duration_seconds: int = 600
    countdown_offset_seconds: int = 4
    total_rounds: int = 5
    min_teams: int = 1
    max_teams: int = 30
    min_round_duration: int = 60
    max_round_duration: int = 3600
    tick_interval_seconds: float = 1.0

    def __post_init__(self):
        # Respect explicit constructor values: only consult env vars when using the dataclass default
        if self.team_count == GameConfig.team_count:
            self.team_count = self._env('GAME_TEAM_COUNT', default=self.team_count, cast=int, aliases=['TEAM_COUNT'])
        if self.round_duration_seconds == GameConfig.round_duration_seconds:
            self.round_duration_seconds = self._env(
                'GAME_ROUND_DURATION_SECONDS', default=self.round_duration_seconds, cast=int,
                aliases=['ROUND_DURATION_SECONDS'],
            )

    def validate(self, required: bool = True) -> None:
        if self.min_teams < 1 or self.max_teams < self.min_teams:
            raise ValueError('team bounds must satisfy 1 <= min_teams <= max_teams')
        if not self.min_teams <= self.team_count <= self.max_teams:
            raise ValueError(f'team_count must be between {self.min_teams} and {self.max_teams}')
        if not self.min_round_duration <= self.round_duration_seconds <= self.max_round_duration:
            raise ValueError(
                f'round_duration_seconds must be between {self.min_round_duration} and {self.max_round_duration}'
            )
        if self.total_rounds < 1:
            raise ValueError('total_rounds must be >= 1')
        if self.tick_interval_seconds <= 0:
            raise ValueError('tick_interval_seconds must be > 0')


@dataclass
class FinanceConfig(BaseConfig):
    tax_rate: float = 0.22
    wacc: float = 0.08
    terminal_growth_rate: float = 0.02
    explicit_forecast_years: int = 5
    net_debt: float = 7765.0
    minority_interest: float = 418.0
    starting_investment_cash: float = 1200.0
    projection_start_year: int = 2031
    projection_years: int = 5
    dividend_payout_ratio: float = 0.25
    volume_drift: float = 0.0
    risk_write_off_fraction: float = 0.5
    min_share_price: float = 0.01

    def __post_init__(self):
        if self.wacc == FinanceConfig.wacc:
            self.wacc = self._env('FINANCE_WACC', default=self.wacc, cast=float)
        if self.tax_rate == FinanceConfig.tax_rate:
            self.tax_rate = self._env('FINANCE_TAX_RATE', default=self.tax_rate, cast=float)
        if self.volume_drift == FinanceConfig.volume_drift:
            self.volume_drift = self._env('FINANCE_VOLUME_DRIFT', default=self.volume_drift, cast=float)

    def validate(self, required: bool = True) -> None:
        if not 0 <= self.tax_rate < 1:
            raise ValueError('tax_rate must be in [0, 1)')
        if self.wacc <= self.terminal_growth_rate:
            raise ValueError('wacc must exceed terminal_growth_rate')
        if self.explicit_forecast_years < 1 or self.projection_years < 1:
            raise ValueError('forecast horizons must be >= 1 year')
        if self.starting_investment_cash <= 0:
            raise ValueError('starting_investment_cash must be > 0')
        if not 0 <= self.dividend_payout_ratio <= 1:
            raise ValueError('dividend_payout_ratio must be between 0 and 1')
        if not 0 <= self.risk_write_off_fraction <= 1:
            raise ValueError('risk_write_off_fraction must be between 0 and 1')


@dataclass
class CashReplenishmentConfig(BaseConfig):
    """Post-round cash generation. Coefficients are tunable, not contractual."""
    base_cash: float = 1200.0
    grow_return_range: Tuple[float, float] = (0.15, 0.25)
    optimize_return_range: Tuple[float, float] = (0.05, 0.10)
    sustain_carrying_cost: float = 0.02
    market_factor_range: Tuple[float, float] = (0.95, 1.05)
    min_cash: float = 800.0
    max_cash: float = 1600.0

    def validate(self, required: bool = True) -> None:
        for name in ('grow_return_range', 'optimize_return_range', 'market_factor_range'):
            low, high = getattr(self, name)
            if low > high:
                raise ValueError(f'{name} lower bound exceeds upper bound')
        if self.min_cash > self.max_cash:
            raise ValueError('min_cash must be <= max_cash')
        if self.min_cash < 0:
            raise ValueError('min_cash must be >= 0')


@dataclass
class CatalogConfig(BaseConfig):
    catalog_path: Optional[Path] = None

    def __post_init__(self):
        if self.catalog_path is None:
            path = self._env('DECISION_CATALOG_PATH')
            self.catalog_path = Path(path) if path else None
        else:
            self.catalog_path = Path(self.catalog_path)

    def validate(self, required: bool = True) -> None:
        if self.catalog_path is not None and not self.catalog_path.exists():
            raise ValueError(f'DECISION_CATALOG_PATH does not exist: {self.catalog_path}')


class AppConfig:
    """Central application configuration container.

    Access sub-configs as attributes (e.g., `AppConfig.game`).
    Use `AppConfig.from_env()` for a validated instance reflecting the
    current environment.
    """

    def __init__(
        self,
        game: Optional[GameConfig] = None,
        finance: Optional[FinanceConfig] = None,
        cash: Optional[CashReplenishmentConfig] = None,
        catalog: Optional[CatalogConfig] = None,
    ):
        self.game = game or GameConfig()
        self.finance = finance or FinanceConfig()
        self.cash = cash or CashReplenishmentConfig()
        self.catalog = catalog or CatalogConfig()

    def validate_all(self, strict: bool = False) -> None:
        self.game.validate()
        self.finance.validate()
        self.cash.validate()
        self.catalog.validate(required=strict)

    @staticmethod
    def check_availability() -> Dict[str, Dict[str, Any]]:
        """Return availability map for each config.

        For each named sub-config return a dict with keys:
        - available: bool
        - reason: Optional[str] explaining failure when available is False
        """
        results: Dict[str, Dict[str, Any]] = {}
        # Construct fresh instances so availability reflects current environment
        configs = {
            'game': GameConfig,
            'finance': FinanceConfig,
            'cash': CashReplenishmentConfig,
            'catalog': CatalogConfig,
        }
        for name, factory in configs.items():
            try:
                factory().validate(required=True)
                results[name] = {'available': True, 'reason': None}
            except Exception as e:
                results[name] = {'available': False, 'reason': str(e)}
        return results

    @staticmethod
    def from_env(strict: bool = False) -> 'AppConfig':
        config = AppConfig()
        config.validate_all(strict=strict)
        return config
