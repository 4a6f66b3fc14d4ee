"""
Write a deterministic sample product CSV for load-testing uploads.

Every ``--invalid-every``-th row is deliberately broken in one of four ways
(blank name, price above mrp, non-numeric mrp, negative quantity) so the
failure report has something to show.
"""

from __future__ import annotations

import argparse
import csv
from pathlib import Path

HEADER = ["sku", "name", "brand", "color", "size", "mrp", "price", "quantity"]

BRANDS = [
    "StreamThreads",
    "DenimWorks",
    "BloomWear",
    "CarryCo",
    "Ethniq",
    "StrideLab",
    "ButtonUp",
    "NorthPeak",
    "UrbanEdge",
    "LuxeLine",
]
COLORS = ["Red", "Blue", "Green", "Yellow", "Navy", "Black", "White", "Grey", "Brown", "Pink", "Multi"]
SIZES = ["XS", "S", "M", "L", "XL", "XXL", "OneSize", "30", "32", "34"]


def build_row(index: int, *, invalid_every: int) -> list[str]:
    mrp = 500 + (index * 37) % 4500
    price = max(1, mrp - (index * 13) % 300)
    row = [
        f"SKU-{index:07d}",
        f"Sample Product {index}",
        BRANDS[index % len(BRANDS)],
        COLORS[index % len(COLORS)],
        SIZES[index % len(SIZES)],
        str(mrp),
        str(price),
        str((index * 7) % 200),
    ]
    if invalid_every > 0 and index % invalid_every == 0:
        defect = (index // invalid_every) % 4
        if defect == 0:
            row[1] = ""
        elif defect == 1:
            row[6] = str(mrp + 1)
        elif defect == 2:
            row[5] = "n/a"
        else:
            row[7] = "-1"
    return row


def write_sample(path: Path, rows: int, *, invalid_every: int = 0) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(HEADER)
        for index in range(1, rows + 1):
            writer.writerow(build_row(index, invalid_every=invalid_every))
    return path


def main() -> int:
    parser = argparse.ArgumentParser(description="Generate a sample product CSV.")
    parser.add_argument("--rows", type=int, default=10_000)
    parser.add_argument("--out", default="tmp/sample_products_10000.csv")
    parser.add_argument(
        "--invalid-every",
        type=int,
        default=0,
        help="Break every Nth row (0 keeps every row valid).",
    )
    args = parser.parse_args()

    path = write_sample(Path(args.out), max(0, args.rows), invalid_every=args.invalid_every)
    print(f"Created {path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
