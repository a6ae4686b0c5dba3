from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Optional, Sequence

from parcel_optimizer.config import load_settings
from parcel_optimizer.containers import get_envelope, standard_envelopes
from parcel_optimizer.engine import DEFAULT_STRATEGIES, estimate_packing, pack_for_envelope
from parcel_optimizer.metrics import compute_metrics
from parcel_optimizer.models import CartLine, Item
from parcel_optimizer.preprocessing import expand_cart

logger = logging.getLogger(__name__)


def load_cart(path: Path) -> list[Item]:
    """
    Read a cart file and expand it into one item per unit.

    Format: {"items": [{"name", "name_local", "category", "length_cm",
    "width_cm", "height_cm", "weight_g", "quantity"}, ...]}
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict) or "items" not in data:
        raise ValueError("Input must include an 'items' list")

    lines = []
    for entry in data["items"]:
        entry = dict(entry)
        quantity = entry.pop("quantity", 1)
        lines.append(CartLine(item=Item(**entry), quantity=quantity))
    return expand_cart(lines)


def write_result(result: dict, path: str = "result.json") -> None:
    """
    Write a result dictionary to a JSON file.

    Creates parent folders if needed, writes JSON with indent=2 and
    sort_keys=True, and overwrites the file on every run.
    """
    output_path = Path(path).resolve()
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(result, f, indent=2, sort_keys=True, ensure_ascii=False)


def _estimate(args: argparse.Namespace) -> int:
    items = load_cart(Path(args.input))
    strategies = DEFAULT_STRATEGIES
    if args.no_compress:
        strategies = tuple(s.model_copy(update={"compress": False}) for s in strategies)

    outcome = estimate_packing(items, strategies=strategies, settings=load_settings())
    used, bounding, density = compute_metrics(outcome.result)
    report = outcome.model_dump(mode="json")
    report["metrics"] = {
        "used_volume_cm3": round(used, 3),
        "bounding_volume_cm3": round(bounding, 3),
        "packing_density": round(density, 4),
    }

    dims = outcome.result.dimensions
    print(
        f"{outcome.kind}: {dims.length_cm:.1f} x {dims.width_cm:.1f} x {dims.height_cm:.1f} cm "
        f"(size sum {dims.size_sum:.1f}, {dims.item_count} items, density {density:.2f})"
    )
    if args.output:
        write_result(report, args.output)
        print(f"Wrote {args.output}")
    return 0


def _fit(args: argparse.Namespace) -> int:
    items = load_cart(Path(args.input))
    container = get_envelope(args.envelope)
    result = pack_for_envelope(items, container)
    if result is None:
        print(f"{len(items)} items do NOT fit {container.name}")
        return 1
    print(f"{len(items)} items fit {container.name}")
    return 0


def _envelopes(args: argparse.Namespace) -> int:
    for container in standard_envelopes():
        print(f"{container.name:<18} {container.length:>5.1f} x {container.width:>5.1f} x {container.height:>5.1f} cm")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Parcel Optimizer CLI")
    parser.add_argument("--verbose", action="store_true", help="Log every candidate strategy")
    sub = parser.add_subparsers(dest="command", required=True)

    estimate = sub.add_parser("estimate", help="Estimate the smallest parcel for a cart")
    estimate.add_argument("--input", required=True, help="Input cart JSON file")
    estimate.add_argument("--output", help="Output result JSON file")
    estimate.add_argument(
        "--no-compress",
        action="store_true",
        help="Use catalog dimensions for plush and fashion items",
    )
    estimate.set_defaults(handler=_estimate)

    fit = sub.add_parser("fit", help="Check whether a cart fits one envelope")
    fit.add_argument("--input", required=True, help="Input cart JSON file")
    fit.add_argument("--envelope", required=True, help="Envelope preset, e.g. NEKOPOSU")
    fit.set_defaults(handler=_fit)

    envelopes = sub.add_parser("envelopes", help="List envelope presets")
    envelopes.set_defaults(handler=_envelopes)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.handler(args)
    except (OSError, ValueError) as e:
        # pydantic ValidationError is a ValueError
        logger.debug("command failed", exc_info=True)
        parser.exit(2, f"error: {e}\n")


if __name__ == "__main__":
    raise SystemExit(main())
