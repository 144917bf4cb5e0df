"""Token and cost accounting for one conversation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class UsageContext:
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    cost: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "inputTokens": self.input_tokens,
            "outputTokens": self.output_tokens,
            "totalTokens": self.total_tokens,
            "cost": self.cost,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> UsageContext:
        if not data:
            return cls()
        cost = data.get("cost")
        return cls(
            input_tokens=int(data.get("inputTokens") or 0),
            output_tokens=int(data.get("outputTokens") or 0),
            total_tokens=int(data.get("totalTokens") or 0),
            cost=float(cost) if cost is not None else None,
        )


class UsageAccumulator:
    """Adds model usage reports together.

    Cost is only tracked when both per-million prices are configured.
    """

    def __init__(
        self,
        initial: UsageContext | None = None,
        input_cost_per_million: float | None = None,
        output_cost_per_million: float | None = None,
    ):
        self._input_cost = input_cost_per_million
        self._output_cost = output_cost_per_million
        self._usage = initial or UsageContext(cost=0.0 if self._prices_known else None)

    @property
    def _prices_known(self) -> bool:
        return self._input_cost is not None and self._output_cost is not None

    @property
    def usage(self) -> UsageContext:
        return self._usage

    def add(self, input_tokens: int, output_tokens: int, total_tokens: int | None = None) -> UsageContext:
        if total_tokens is None:
            total_tokens = input_tokens + output_tokens

        cost = self._usage.cost
        if self._prices_known:
            increment = (
                input_tokens * self._input_cost + output_tokens * self._output_cost
            ) / 1_000_000
            cost = round((cost or 0.0) + increment, 6)

        self._usage = UsageContext(
            input_tokens=self._usage.input_tokens + input_tokens,
            output_tokens=self._usage.output_tokens + output_tokens,
            total_tokens=self._usage.total_tokens + total_tokens,
            cost=cost,
        )
        return self._usage
