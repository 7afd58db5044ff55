#!/usr/bin/env python3
"""Generate synthetic cutoff workbooks for smoke and throughput runs.

Each column is one institution: the header row holds "NAME, CITY, STATE" and
the rows below stack program / category / quota labels over rank numbers,
the way the published counselling spreadsheets are laid out. A share of the
ranks get a stray space ("10248 0") and some labels get split-word typos so
the normalizer has something to do.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np
import pandas as pd

PROGRAMS = [
    "M.D. GENERAL MEDICINE",
    "M.S. GENERAL SURGERY",
    "M.D. PAEDIATRICS",
    "M.D. RADIO-DIAGNOSIS",
    "M.S. ORTHOPAEDICS",
    "M.D. DERMATOLOGY",
]
CATEGORIES = ["OPEN", "OBC", "SC", "ST", "EWS"]
QUOTAS = ["ALL INDIA QUOTA", "DEEMED/PAID SEATS QUOTA", "MANAGE MENT/PAI D SEATS QUOTA"]
CITIES = ["DELHI", "MUMBAI", "CHENNAI", "KOLKATA", "BENGALURU", "PUNE"]


def generate_column(rng: np.random.Generator, index: int, ranks_per_quota: int) -> list[str]:
    """One institution column, header first."""
    city = CITIES[index % len(CITIES)]
    cells = [f"INSTITUTE {index + 1} OF MEDICAL SCIENCES, {city}, STATE {index % 7}"]
    for program in rng.choice(PROGRAMS, size=2, replace=False):
        cells.append(str(program))
        for category in rng.choice(CATEGORIES, size=2, replace=False):
            cells.append(str(category))
            cells.append(str(rng.choice(QUOTAS)))
            for rank in sorted(rng.integers(1, 200_000, size=ranks_per_quota)):
                text = str(int(rank))
                if len(text) == 6 and rng.random() < 0.1:
                    text = f"{text[:5]} {text[5:]}"
                cells.append(text)
    return cells


def create_workbook(
    output_path: Path, institutions: int, ranks_per_quota: int, seed: int = 42
) -> int:
    """Write the workbook; returns the number of rank cells."""
    rng = np.random.default_rng(seed)
    columns = [generate_column(rng, i, ranks_per_quota) for i in range(institutions)]
    height = max(len(c) for c in columns)
    frame = pd.DataFrame({i: c + [None] * (height - len(c)) for i, c in enumerate(columns)})

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        frame.to_excel(writer, sheet_name="Sheet1", header=False, index=False)
    return institutions * 2 * 2 * ranks_per_quota


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate a synthetic cutoff workbook",
        epilog="Example: %(prog)s data/AIQ_PG_2024_R1.xlsx --institutions 200",
    )
    parser.add_argument("output", type=Path, help="Output .xlsx path (name sets the context)")
    parser.add_argument("--institutions", type=int, default=50, help="Columns to generate")
    parser.add_argument("--ranks", type=int, default=10, help="Rank cells per quota block")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    args = parser.parse_args()

    if args.institutions < 1 or args.ranks < 1:
        print("Error: --institutions and --ranks must be positive", file=sys.stderr)
        return 1
    if args.output.suffix.lower() != ".xlsx":
        print("Error: output must end in .xlsx", file=sys.stderr)
        return 1

    ranks = create_workbook(args.output, args.institutions, args.ranks, args.seed)
    print(f"Created {args.output}: {args.institutions} institutions, {ranks:,} rank cells")
    return 0


if __name__ == "__main__":
    sys.exit(main())
