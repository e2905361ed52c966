#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.happenings.assembler import parse_query  # noqa: E402
from backend.happenings.events import search_events  # noqa: E402


def _print_events(result) -> None:  # noqa: ANN001
    if not result.success:
        print(f"Search failed: {result.error}", file=sys.stderr)
        return
    print(f"{result.total_found} matching events")
    for event in result.events:
        distance = f" ({event.distance_km} km)" if event.distance_km is not None else ""
        print(f"- {event.name} @ {event.venue}{distance} | {event.price_display}")
        print(f"  {event.tracked_url}")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Turn a free-text request into ranked events.")
    parser.add_argument("query", help="Free-text request, e.g. 'jazz this weekend in bandra'")
    parser.add_argument("--city", help="Default city when the query names none")
    parser.add_argument("-n", "--limit", type=int, help="Default result count")
    parser.add_argument("--sort", choices=("distance", "date"), default="distance")
    parser.add_argument("--parse-only", action="store_true", help="Stop after building the spec")
    parser.add_argument("--no-model", action="store_true", help="Skip the model tag fallback")
    parser.add_argument("--json", action="store_true", help="Emit JSON instead of text")
    args = parser.parse_args(argv)

    parsed = parse_query(
        args.query,
        default_city=args.city,
        default_limit=args.limit,
        use_model=not args.no_model,
    )
    if args.parse_only:
        print(json.dumps(parsed.model_dump(mode="json"), ensure_ascii=False, indent=2))
        return 0

    result = search_events(parsed.spec, sort_by=args.sort)
    if args.json:
        payload = {
            "spec": parsed.spec.model_dump(mode="json"),
            "result": result.model_dump(mode="json"),
        }
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        _print_events(result)
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
