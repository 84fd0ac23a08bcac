"""
Reconciled Wind Series.

An immutable, chronologically ordered sequence of wind samples with unique
timestamps. It is the single artefact handed to the chart/table renderers
and to the safety classifier, and is swapped wholesale on every refresh.
"""

from datetime import datetime
from typing import Iterable, Iterator, List, Sequence, Tuple, Union, overload

import numpy as np
import xarray as xr

from common.errors import InvalidInput
from common.types import WindSample


class ReconciledSeries(Sequence[WindSample]):
    """Timestamp-unique sequence of ``WindSample``.

    Order is taken from the input as-is; reconciliation preserves the
    order of the forecast it was built from.

    Raises
    ------
    InvalidInput
        If two samples share a timestamp.
    """

    __slots__ = ("_samples",)

    def __init__(self, samples: Iterable[WindSample] = ()):
        items: Tuple[WindSample, ...] = tuple(samples)
        seen = set()
        for sample in items:
            if sample.timestamp in seen:
                raise InvalidInput(
                    f"Duplicate timestamp {sample.timestamp.isoformat()} in series"
                )
            seen.add(sample.timestamp)
        self._samples = items

    @overload
    def __getitem__(self, index: int) -> WindSample: ...

    @overload
    def __getitem__(self, index: slice) -> "ReconciledSeries": ...

    def __getitem__(self, index: Union[int, slice]):
        if isinstance(index, slice):
            return ReconciledSeries(self._samples[index])
        return self._samples[index]

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[WindSample]:
        return iter(self._samples)

    def __eq__(self, other) -> bool:
        if isinstance(other, ReconciledSeries):
            return self._samples == other._samples
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._samples)

    def __repr__(self) -> str:
        return f"ReconciledSeries({len(self._samples)} samples)"

    @property
    def samples(self) -> Tuple[WindSample, ...]:
        return self._samples

    @property
    def timestamps(self) -> List[datetime]:
        return [s.timestamp for s in self._samples]

    @property
    def missing_gust_count(self) -> int:
        """Number of samples without a gust value."""
        return sum(1 for s in self._samples if s.gust is None)

    def to_dataset(self) -> xr.Dataset:
        """Tabular view of the series for chart and table collaborators.

        Returns
        -------
        xr.Dataset
            Dimension ``time`` with variables ``speed``, ``direction``,
            ``gust`` (NaN where absent) and ``is_daytime``.
        """
        # numpy datetime64 has no timezone; timestamps are UTC by construction.
        times = np.array(
            [s.timestamp.replace(tzinfo=None) for s in self._samples],
            dtype="datetime64[ns]"
        )

        def _column(values) -> np.ndarray:
            return np.array([np.nan if v is None else v for v in values], dtype=np.float64)

        ds = xr.Dataset(
            data_vars={
                "speed": ("time", _column(s.speed for s in self._samples)),
                "direction": ("time", _column(s.direction for s in self._samples)),
                "gust": ("time", _column(s.gust for s in self._samples)),
                "is_daytime": ("time", np.array([s.is_daytime for s in self._samples],
                                                dtype=bool)),
            },
            coords={"time": times},
        )
        ds["speed"].attrs["units"] = "m/s"
        ds["gust"].attrs["units"] = "m/s"
        ds["direction"].attrs["units"] = "degree"
        ds.attrs["reference_height_m"] = 10.0
        ds.attrs["timezone"] = "UTC"
        return ds
