"""
Command-line entry point for water temperature estimation.

Runs the engine on a stored weather payload and prints the results as JSON,
for debugging and parity checks.
"""

import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from .core.date_utils import DateUtils
from .engine import WaterTempEngine
from .processing.normalizer import ContextNormalizer
from .storage import JsonFileStore


def load_payload(path: str) -> Dict[str, Any]:
    """
    Load a weather payload from a JSON file.

    Args:
        path: Path to the payload file

    Returns:
        Parsed payload

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is not a JSON object
    """
    payload_path = Path(path)
    if not payload_path.exists():
        raise FileNotFoundError(f"Payload file not found: {path}")

    with open(payload_path, "r", encoding="utf-8") as f:
        payload = json.load(f)

    if not isinstance(payload, dict):
        raise ValueError(f"Payload must be a JSON object: {path}")
    return payload


def run(
    engine: WaterTempEngine,
    payload: Dict[str, Any],
    lat: float,
    lon: float,
    water_type: str,
    when: Optional[str] = None,
    timezone: Optional[str] = None,
    explain: bool = False,
    project: bool = False,
    view: bool = False
) -> Dict[str, Any]:
    """
    Run the requested engine operations on one payload.

    Args:
        engine: Engine instance
        payload: Raw weather payload
        lat: Latitude
        lon: Longitude
        water_type: 'pond', 'lake' or 'reservoir'
        when: Estimate instant (ISO); defaults to the payload's nowIso or now
        timezone: Timezone override
        explain: Include the term breakdown and fields read, and per-day
                 projection breakdowns when projecting
        project: Include the multi-day projection
        view: Include the daily view

    Returns:
        JSON-serializable result
    """
    coords = {"lat": lat, "lon": lon}
    context = engine.normalize(payload, coords=coords, water_type=water_type, timezone=timezone, now_override=when)

    output: Dict[str, Any] = {
        "waterType": water_type,
        "timezone": context.timezone,
        "fingerprint": ContextNormalizer.fingerprint(context),
    }

    if explain:
        result = engine.explain_terms(coords, water_type, when, context=context)
        output["explain"] = result.to_dict()

    surface = engine.estimate(coords, water_type, when, context=context)
    output["estimate"] = surface

    if project:
        projection = engine.project_daily(surface, context, water_type, lat)
        output["projection"] = projection
        if explain:
            output["projectionExplain"] = [
                engine.explain_projection_day(surface, context, water_type, lat, day_index).to_dict()
                for day_index in range(1, len(projection))
            ]

    if view:
        output["view"] = engine.build_daily_view(surface, water_type, context)

    return output


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Water Temperature Estimation System"
    )
    parser.add_argument(
        "--payload",
        type=str,
        required=True,
        help="Path to weather payload JSON file"
    )
    parser.add_argument("--lat", type=float, required=True, help="Latitude")
    parser.add_argument("--lon", type=float, required=True, help="Longitude")
    parser.add_argument(
        "--water-type",
        type=str,
        default="lake",
        choices=["pond", "lake", "reservoir"],
        help="Water body type. Default: lake"
    )
    parser.add_argument(
        "--date",
        type=str,
        default=None,
        help="Estimate instant (ISO 8601). Default: payload nowIso, else now"
    )
    parser.add_argument(
        "--timezone",
        type=str,
        default=None,
        help="IANA timezone override"
    )
    parser.add_argument(
        "--store",
        type=str,
        default=None,
        help="Path to JSON record store (memo, observed readings, crowd reports)"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to configuration file"
    )
    parser.add_argument("--explain", action="store_true", help="Print the term breakdown (per day too with --project)")
    parser.add_argument("--project", action="store_true", help="Print the multi-day projection")
    parser.add_argument("--view", action="store_true", help="Print the sunrise/midday/sunset view")

    args = parser.parse_args()

    if args.date and DateUtils.parse_timestamp(args.date) is None:
        print(f"Invalid date format: {args.date}. Use ISO 8601, e.g. 2026-02-16T12:00:00Z")
        sys.exit(1)

    try:
        payload = load_payload(args.payload)
        engine = WaterTempEngine(
            config_file=args.config,
            store=JsonFileStore(args.store) if args.store else None,
        )
        output = run(
            engine,
            payload,
            lat=args.lat,
            lon=args.lon,
            water_type=args.water_type,
            when=args.date,
            timezone=args.timezone,
            explain=args.explain,
            project=args.project,
            view=args.view,
        )
    except Exception as e:
        print(f"Application failed: {e}")
        sys.exit(1)

    print(json.dumps(output, indent=2, default=str))


if __name__ == "__main__":
    main()
