"""
Reduce RTDB telemetry to a TelemetrySummary, trying sources in strict priority:

1. /deployments/{botId}/readings          (one live node per bot, the normal case)
2. /deployments/{deploymentId}/readings   (node keyed by the Firestore deployment id, e.g. re-runs)
3. /bots/{botId}                          (last-known gauges, counted as a single sample)

The first source with data wins; sources are never merged.
"""
import logging
import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Any, Iterable, Mapping

from botsync.core import constants as c
from botsync.core.errors import StoreReadError
from botsync.core.results import NotFound, Ok
from botsync.services.base import TreeStore
from botsync.services.rtdb.client import join_path

logger = logging.getLogger(__name__)

ROUND_DIGITS = 3


@dataclass
class TelemetrySummary:
    total_trash_kg: float = 0
    avg_ph: float | None = None
    avg_turbidity: float | None = None
    avg_temperature_c: float | None = None
    last_battery_pct: float | None = None
    sample_count: int = 0
    source: str = c.SOURCE_NONE

    def to_metrics(self) -> dict[str, Any]:
        """Shape stored in deployments/{id}.metrics (dashboard reads these exact keys)."""
        return {
            "totalTrashKg": self.total_trash_kg,
            "avgPH": self.avg_ph,
            "avgTurbidity": self.avg_turbidity,
            "avgTemperatureC": self.avg_temperature_c,
            "lastBatteryPct": self.last_battery_pct,
            "sampleCount": self.sample_count,
            "source": self.source,
        }


def round_half_away(value: float, digits: int = ROUND_DIGITS) -> float:
    """Round half away from zero (7.0025 -> 7.003, -7.0025 -> -7.003). Built-in round() is half-even."""
    if not math.isfinite(value):
        return value
    d = Decimal(repr(value))
    with localcontext() as ctx:
        # quantize needs every integer digit plus `digits` decimals within precision
        ctx.prec = max(ctx.prec, d.adjusted() + digits + 2)
        return float(d.quantize(Decimal(1).scaleb(-digits), rounding=ROUND_HALF_UP))


def _to_number(v: Any) -> float | int | None:
    """Finite number or None. Numeric strings are accepted; bools, blanks and NaN are not."""
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, (int, float)):
        return v if math.isfinite(v) else None
    if isinstance(v, str):
        try:
            n = float(v.strip())
        except ValueError:
            return None
        return n if math.isfinite(n) else None
    return None


def _first_present(record: Mapping[str, Any], key: str, alt: str) -> Any:
    v = record.get(key)
    return v if v is not None else record.get(alt)


def _ordered_readings(node: Any) -> list[Mapping[str, Any]]:
    """Readings in chronological order. Push keys sort lexically; RTDB turns 0..n keys into a list."""
    if isinstance(node, Mapping):
        items: Iterable[Any] = (node[k] for k in sorted(node, key=str))
    elif isinstance(node, list):
        items = node
    else:
        return []
    # Non-mapping entries (array holes, scalars) are not readings and do not count as samples
    return [r for r in items if isinstance(r, Mapping)]


class TelemetryAggregator:
    def __init__(self, rtdb: TreeStore, *, trash_input_unit: str = c.TRASH_UNIT_KG) -> None:
        self._rtdb = rtdb
        self._trash_in_kg = trash_input_unit == c.TRASH_UNIT_KG

    def _trash_kg(self, record: Mapping[str, Any]) -> float | int | None:
        if self._trash_in_kg:
            return _to_number(record.get(c.TELEMETRY_TRASH_KG))
        grams = _to_number(record.get(c.TELEMETRY_TRASH_GRAMS))
        return grams / 1000 if grams is not None else None

    def _fetch(self, path: str) -> Any:
        """Node value, or None when absent. Any other failure raises so the caller retries later."""
        result = self._rtdb.get(path)
        if isinstance(result, Ok):
            return result.value
        if isinstance(result, NotFound):
            return None
        raise StoreReadError(f"read telemetry {path}", result)

    def summarize(self, bot_id: str | None, deployment_id: str | None) -> TelemetrySummary:
        if bot_id:
            path = join_path(c.RT_DEPLOYMENTS_ROOT, bot_id, c.RT_READINGS)
            summary = self.reduce_readings(self._fetch(path), source=path)
            if summary is not None:
                return summary

        if deployment_id:
            path = join_path(c.RT_DEPLOYMENTS_ROOT, deployment_id, c.RT_READINGS)
            summary = self.reduce_readings(self._fetch(path), source=path)
            if summary is not None:
                return summary

        if bot_id:
            path = join_path(c.RT_BOTS_ROOT, bot_id)
            snap = self._fetch(path)
            if isinstance(snap, Mapping) and snap:
                return self.reduce_snapshot(snap, source=path)

        logger.info("No telemetry for bot=%s deployment=%s", bot_id, deployment_id)
        return TelemetrySummary()

    def reduce_readings(self, node: Any, *, source: str) -> TelemetrySummary | None:
        """Summary over all readings, or None when the node holds no usable reading."""
        readings = _ordered_readings(node)
        if not readings:
            return None

        ph_sum = turb_sum = temp_sum = trash_sum = 0.0
        last_battery = None
        count = 0
        for r in readings:
            ph = _to_number(r.get(c.TELEMETRY_PH))
            turbidity = _to_number(r.get(c.TELEMETRY_TURBIDITY))
            temp = _to_number(_first_present(r, c.TELEMETRY_TEMPERATURE, c.TELEMETRY_TEMPERATURE_ALT))
            trash = self._trash_kg(r)
            battery = _to_number(_first_present(r, c.TELEMETRY_BATTERY, c.TELEMETRY_BATTERY_ALT))

            if ph is not None:
                ph_sum += ph
            if turbidity is not None:
                turb_sum += turbidity
            if temp is not None:
                temp_sum += temp
            if trash is not None:
                trash_sum += trash
            # Battery is a gauge: keep the latest reading, do not average
            if battery is not None:
                last_battery = battery
            count += 1

        return TelemetrySummary(
            total_trash_kg=round_half_away(trash_sum),
            avg_ph=round_half_away(ph_sum / count),
            avg_turbidity=round_half_away(turb_sum / count),
            avg_temperature_c=round_half_away(temp_sum / count),
            last_battery_pct=last_battery,
            sample_count=count,
            source=source,
        )

    def reduce_snapshot(self, snap: Mapping[str, Any], *, source: str) -> TelemetrySummary:
        """One record as one sample. Missing gauges are None; missing trash is 0."""
        trash = self._trash_kg(snap)
        return TelemetrySummary(
            total_trash_kg=trash if trash is not None else 0,
            avg_ph=_to_number(snap.get(c.TELEMETRY_PH)),
            avg_turbidity=_to_number(snap.get(c.TELEMETRY_TURBIDITY)),
            avg_temperature_c=_to_number(_first_present(snap, c.TELEMETRY_TEMPERATURE, c.TELEMETRY_TEMPERATURE_ALT)),
            last_battery_pct=_to_number(_first_present(snap, c.TELEMETRY_BATTERY, c.TELEMETRY_BATTERY_ALT)),
            sample_count=1,
            source=source,
        )
