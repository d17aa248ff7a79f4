"""
Sensitivity records produced by staged calibration.

For every calibrated curve the engine stores a CurveBuildingBlock:
- the (start, count) span of every curve solved up to and including its
  stage, in the order the global parameter vector is laid out
- the Jacobian of the instruments of its stage with respect to all
  parameters solved so far
- the rows of the inverse of the Jacobian over every instrument so far
  that belong to the curve: its parameter sensitivity to those quotes

The bundle maps curve names to blocks and accumulates across stages.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

import numpy as np
import pandas as pd


@dataclass
class CurveBuildingBlock:
    """
    Attributes:
        spans: Curve name -> (start, count) in the parameter vector
        jacobian: d(stage instrument residuals) / d(parameters), all curves so far
        inverse_jacobian: d(curve parameters) / d(market quotes), rows of this curve
    """
    name: str
    spans: Dict[str, Tuple[int, int]]
    jacobian: np.ndarray
    inverse_jacobian: np.ndarray

    @property
    def start(self) -> int:
        return self.spans[self.name][0]

    @property
    def count(self) -> int:
        return self.spans[self.name][1]

    @property
    def total_parameters(self) -> int:
        return sum(count for _, count in self.spans.values())

    def curve_jacobian(self, name: Optional[str] = None) -> np.ndarray:
        """Columns of the Jacobian for one curve's parameters."""
        start, count = self.spans[name or self.name]
        return self.jacobian[:, start:start + count]

    def copy(self) -> "CurveBuildingBlock":
        return CurveBuildingBlock(self.name, dict(self.spans), self.jacobian.copy(), self.inverse_jacobian.copy())

    def __eq__(self, other) -> bool:
        if not isinstance(other, CurveBuildingBlock):
            return NotImplemented
        return (
            self.name == other.name
            and self.spans == other.spans
            and np.array_equal(self.jacobian, other.jacobian)
            and np.array_equal(self.inverse_jacobian, other.inverse_jacobian)
        )

    __hash__ = None


class CurveBuildingBlockBundle:
    """Ordered map curve name -> CurveBuildingBlock."""

    def __init__(self, blocks: Optional[Dict[str, CurveBuildingBlock]] = None):
        self._blocks: Dict[str, CurveBuildingBlock] = dict(blocks or {})

    def add(self, block: CurveBuildingBlock) -> None:
        self._blocks[block.name] = block

    def update(self, other: "CurveBuildingBlockBundle") -> None:
        for block in other:
            self.add(block)

    def __getitem__(self, name: str) -> CurveBuildingBlock:
        return self._blocks[name]

    def get(self, name: str, default=None):
        return self._blocks.get(name, default)

    def __contains__(self, name: str) -> bool:
        return name in self._blocks

    def __iter__(self) -> Iterator[CurveBuildingBlock]:
        return iter(self._blocks.values())

    def __len__(self) -> int:
        return len(self._blocks)

    def keys(self):
        return self._blocks.keys()

    @property
    def curve_names(self):
        return list(self._blocks)

    def copy(self) -> "CurveBuildingBlockBundle":
        return CurveBuildingBlockBundle({name: block.copy() for name, block in self._blocks.items()})

    def to_frame(self) -> pd.DataFrame:
        """
        Parameter layout of every block.

        One row per (curve, dependency) pair with the dependency's span in
        the curve's block.
        """
        rows = []
        for block in self:
            for dependency, (start, count) in block.spans.items():
                rows.append({
                    "curve": block.name,
                    "depends_on": dependency,
                    "start": start,
                    "count": count,
                    "instruments": block.jacobian.shape[0],
                })
        return pd.DataFrame(rows, columns=["curve", "depends_on", "start", "count", "instruments"])

    def __eq__(self, other) -> bool:
        if not isinstance(other, CurveBuildingBlockBundle):
            return NotImplemented
        return self._blocks == other._blocks

    __hash__ = None

    def __repr__(self) -> str:
        spans = {block.name: block.spans[block.name] for block in self}
        return f"CurveBuildingBlockBundle({spans})"


__all__ = ["CurveBuildingBlock", "CurveBuildingBlockBundle"]
