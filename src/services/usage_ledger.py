"""
Run-wide accounting of summarization usage and its estimated cost.
"""
import json
import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from core.entities import UsageRecord
from services.config import RateConfig

logger = logging.getLogger(__name__)

UNITS_PER_RATE = 1_000_000


class UsageLedger:
    """
    Accumulates usage per provider tag. Recording None is a no-op;
    zero-valued records still register the provider.
    """

    def __init__(self, rates: Optional[Dict[str, RateConfig]] = None):
        self.rates = rates or {}
        self._totals: Dict[str, UsageRecord] = {}

    def record(self, provider_tag: str, usage: Optional[UsageRecord]) -> None:
        if usage is None:
            return
        current = self._totals.get(provider_tag, UsageRecord.zero(provider_tag))
        self._totals[provider_tag] = current + usage

    def record_all(self, usage: Dict[str, UsageRecord]) -> None:
        for provider_tag, record in usage.items():
            self.record(provider_tag, record)

    def total(self) -> Dict[str, UsageRecord]:
        return dict(self._totals)

    def estimated_cost(self) -> Dict[str, float]:
        """Dollar estimate per provider plus a `total` entry. Unknown providers cost 0."""
        costs: Dict[str, float] = {}
        for provider_tag, usage in self._totals.items():
            rate = self.rates.get(provider_tag, RateConfig())
            costs[provider_tag] = (
                usage.prompt_units * rate.prompt + usage.completion_units * rate.completion
            ) / UNITS_PER_RATE
        costs["total"] = sum(costs.values())
        return costs

    def summary(self) -> Dict[str, Any]:
        costs = self.estimated_cost()
        return {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "usage": {
                provider_tag: {
                    "prompt_units": usage.prompt_units,
                    "completion_units": usage.completion_units,
                }
                for provider_tag, usage in self._totals.items()
            },
            "costs": {name: round(value, 6) for name, value in costs.items()},
        }

    def log_summary(self) -> None:
        summary = self.summary()
        for provider_tag, usage in summary["usage"].items():
            logger.info(
                f"{provider_tag}: {usage['prompt_units']} prompt / "
                f"{usage['completion_units']} completion units, "
                f"${summary['costs'][provider_tag]:.4f}"
            )
        logger.info(f"Estimated run cost: ${summary['costs']['total']:.4f}")

    def log_to_file(self, path: str) -> None:
        """Append one JSON line with this run's summary."""
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, "a") as f:
            f.write(json.dumps(self.summary()) + "\n")
        logger.info(f"Cost log appended to {path}")


# Runs per month used for the projection (weekday episodes)
RUNS_PER_MONTH = 22


def _parse_timestamp(value: Any) -> Optional[datetime]:
    try:
        parsed = datetime.fromisoformat(str(value))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def cost_report(path: str, days: int = 30, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Read the JSONL cost log and total the runs from the last `days` days.
    Lines that are not valid JSON or carry no readable timestamp are skipped.
    A missing log reads as zero runs.
    """
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(days=days)

    providers: Dict[str, float] = {}
    total = 0.0
    runs = 0

    if os.path.exists(path):
        with open(path) as f:
            for line in f:
                line = line.strip()
                if not line:
                    continue
                try:
                    entry = json.loads(line)
                except json.JSONDecodeError:
                    logger.debug(f"Skipping unreadable cost log line in {path}")
                    continue
                if not isinstance(entry, dict):
                    continue
                timestamp = _parse_timestamp(entry.get("timestamp"))
                if timestamp is None or timestamp < cutoff:
                    continue

                costs = entry.get("costs") or {}
                for name, value in costs.items():
                    if name == "total":
                        continue
                    providers[name] = providers.get(name, 0.0) + float(value or 0)
                total += float(costs.get("total") or 0)
                runs += 1
    else:
        logger.info(f"No cost log found at {path}")

    average = total / runs if runs else 0.0
    return {
        "days": days,
        "runs": runs,
        "providers": {name: round(value, 6) for name, value in providers.items()},
        "total": round(total, 6),
        "average_per_run": round(average, 6),
        "projected_monthly": round(average * RUNS_PER_MONTH, 6),
    }


def log_cost_report(report: Dict[str, Any]) -> None:
    logger.info(f"Cost report for the last {report['days']} days: {report['runs']} runs")
    for name, value in report["providers"].items():
        logger.info(f"{name}: ${value:.4f}")
    logger.info(
        f"Total ${report['total']:.4f}, average per run ${report['average_per_run']:.4f}, "
        f"projected monthly ({RUNS_PER_MONTH} runs) ${report['projected_monthly']:.2f}"
    )
