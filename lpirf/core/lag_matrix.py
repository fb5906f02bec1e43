"""
Lagged design matrices for local projections.

Row i of a LagMatrix belongs to time index ``start + i``. Its regressors are,
in this order: the deterministic terms (constant, optionally a linear and a
quadratic time trend), the contemporaneous shock (identified-shock variants),
lags 1..p of every endogenous variable (most recent block first), lags
1..lags_exog of every exogenous variable and the contemporaneous-impact
variables.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

import numpy as np

from ..exceptions import InsufficientDataError, ValidationError
from ..utils.data_structures import Dataset

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LagMatrix:
    """Response matrix Y and row-aligned regressors X (and instruments Z)"""

    y: np.ndarray
    x: np.ndarray
    z: Optional[np.ndarray]
    lags: int
    start: int
    n_endog: int
    column_names: Tuple[str, ...]
    n_deterministic: int
    n_contemp: int = 0
    shock_columns: Tuple[int, ...] = ()       # one entry per regime
    lag_block_starts: Tuple[int, ...] = ()    # first-lag block start, one entry per regime

    @property
    def n_obs(self) -> int:
        return self.y.shape[0]

    @property
    def n_regressors(self) -> int:
        return self.x.shape[1]

    @property
    def n_regimes(self) -> int:
        return max(len(self.shock_columns), len(self.lag_block_starts), 1)

    def sample_size(self, h: int) -> int:
        """Usable observations for regression index h (responses led by h-1)"""
        return self.n_obs - h + 1

    def for_horizon(self, h: int):
        """
        Align the design for regression index h.

        The response rows are shifted forward by h-1 and the regressor rows
        are cut to the same length, so row i pairs y_{t+h-1} with x_t.

        Returns:
            tuple: (y_h, x_h, z_h), z_h is None without instruments
        """
        if h < 1:
            raise ValueError(f"Regression index has to be >= 1, got {h}")
        n_h = self.sample_size(h)
        if n_h < 1:
            raise InsufficientDataError(f"No observations left for horizon {h} with {self.lags} lags")
        z_h = None if self.z is None else self.z[:n_h]
        return self.y[h - 1:], self.x[:n_h], z_h

    def lag_block(self, regime: int = 0) -> np.ndarray:
        """Column positions of the first endogenous lag of every variable"""
        if not self.lag_block_starts:
            raise ValueError("Design contains no endogenous lags")
        first = self.lag_block_starts[regime]
        return np.arange(first, first + self.n_endog)


def _lagged(values, lag, start, n_total):
    return values[start - lag:n_total - lag]


class LagMatrixBuilder:
    """
    Builds LagMatrix objects for one dataset and trend specification.

    Args:
        dataset: Validated input tables
        trend: 0 = constant only, 1 = plus linear trend, 2 = plus quadratic trend
        lags_exog: Lag order of the exogenous variables
        include_shock: Put the contemporaneous shock series into X
        include_instruments: Build the instrument matrix Z
        min_start: Smallest allowed time index of the first row
    """

    def __init__(self, dataset: Dataset, trend: int = 0, lags_exog: Optional[int] = None,
                 include_shock: bool = False, include_instruments: bool = False,
                 min_start: int = 0):
        if trend not in (0, 1, 2):
            raise ValidationError(f"trend has to be 0, 1 or 2, got {trend}")
        if dataset.exog is not None and lags_exog is None:
            raise ValidationError("Please provide a lag length for the exogenous data.")
        if include_shock and dataset.shock is None:
            raise ValidationError("You have to provide a shock series for this estimation.")
        if include_instruments and dataset.instruments is None:
            raise ValidationError("Two-stage least squares requires instruments.")

        self.dataset = dataset
        self.trend = trend
        self.lags_exog = lags_exog if dataset.exog is not None else None
        self.include_shock = include_shock
        self.include_instruments = include_instruments
        self.min_start = min_start

        self._endog = dataset.endog.to_numpy(dtype=float)
        self._shock = dataset.shock.to_numpy(dtype=float) if include_shock else None
        self._instruments = dataset.instruments.to_numpy(dtype=float) if include_instruments else None
        self._exog = dataset.exog.to_numpy(dtype=float) if self.lags_exog else None
        self._contemp = dataset.contemp.to_numpy(dtype=float) if dataset.contemp is not None else None

    def first_row(self, lags: int) -> int:
        return max(lags, self.lags_exog or 0, self.min_start)

    def build(self, lags: int) -> LagMatrix:
        """
        Build the design for endogenous lag order ``lags``.

        Raises:
            InsufficientDataError: If a lag count is negative or fewer than two
                usable rows remain
        """
        if lags < 0 or (self.lags_exog is not None and self.lags_exog < 0):
            raise InsufficientDataError(f"Lag orders must be non-negative (lags={lags}, "
                                        f"lags_exog={self.lags_exog})")

        n_total, n_endog = self._endog.shape
        start = self.first_row(lags)
        if n_total <= start + 1:
            raise InsufficientDataError(
                f"{n_total} observations are not enough for {lags} lags "
                f"(first usable row is {start})"
            )

        n_rows = n_total - start
        blocks = [np.ones((n_rows, 1))]
        names = ["const"]
        time_index = np.arange(start + 1, n_total + 1, dtype=float).reshape(-1, 1)
        if self.trend >= 1:
            blocks.append(time_index)
            names.append("trend")
        if self.trend == 2:
            blocks.append(time_index ** 2)
            names.append("trend_sq")
        n_deterministic = len(names)

        shock_columns = ()
        if self.include_shock:
            shock_columns = (len(names),)
            blocks.append(self._shock[start:].reshape(-1, 1))
            names.append(self.dataset.shock_name)

        lag_block_starts = ()
        endog_names = self.dataset.endog_names
        if lags > 0:
            lag_block_starts = (len(names),)
            for lag in range(1, lags + 1):
                blocks.append(_lagged(self._endog, lag, start, n_total))
                names.extend(f"{name}_lag{lag}" for name in endog_names)

        if self._exog is not None:
            exog_names = tuple(self.dataset.exog.columns)
            for lag in range(1, self.lags_exog + 1):
                blocks.append(_lagged(self._exog, lag, start, n_total))
                names.extend(f"{name}_lag{lag}" for name in exog_names)

        if self._contemp is not None:
            blocks.append(self._contemp[start:])
            names.extend(self.dataset.contemp.columns)

        z = self._instruments[start:].copy() if self._instruments is not None else None

        logger.debug(f"Built lag matrix with {lags} lags: {n_rows} rows, {len(names)} regressors")
        return LagMatrix(
            y=self._endog[start:].copy(),
            x=np.hstack(blocks),
            z=z,
            lags=lags,
            start=start,
            n_endog=n_endog,
            column_names=tuple(names),
            n_deterministic=n_deterministic,
            n_contemp=0 if self._contemp is None else self._contemp.shape[1],
            shock_columns=shock_columns,
            lag_block_starts=lag_block_starts,
        )

    def build_candidates(self, orders: Iterable[int]) -> Dict[int, LagMatrix]:
        """
        Build one design per candidate lag order.

        Orders that leave too few rows are left out.

        Raises:
            InsufficientDataError: If none of the orders can be built
        """
        candidates = {}
        last_error = None
        for lags in orders:
            try:
                candidates[lags] = self.build(lags)
            except InsufficientDataError as e:
                logger.debug(f"Skipping lag order {lags}: {e}")
                last_error = e
        if not candidates:
            raise last_error or InsufficientDataError("No candidate lag orders given")
        return candidates
