#!/usr/bin/env python3
"""Sample data generator for manual testing of the sorter and the report generator.

Produces:
- an inspection workbook (first row = header, one row per finding) with a few
  findings per asset, multi-line descriptions and the occasional blank cell
- optionally a folder of files whose names carry identifiers such as
  ``Inspection-0-12-345-6789-01-234.pdf`` plus some files without one
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np
import pandas as pd

COLUMNS = [
    "ID",
    "Inspection Date(Report)",
    "Asset Name",
    "Route(Asset)",
    "Feature Crossed(Asset)",
    "District(Report)",
    "Bridge Component(Report)",
    "Repair Category(Report)",
    "Description of Issue(Report)",
    "Workflow Stage",
]

COMPONENTS = ["Deck", "Superstructure", "Substructure", "Culvert", "Approach"]
CATEGORIES = ["Routine", "Priority", "Critical"]
STAGES = ["New", "Assigned", "In Review", "Closed"]
ISSUES = [
    "Spalling at joint",
    "Exposed rebar\nSection loss approx. 10%",
    "Scour at pier 2",
    "Cracked bearing pad\nMonitor next cycle",
    "Debris accumulation",
]


def generate_inspection_rows(assets: int, findings: int, seed: int = 42) -> pd.DataFrame:
    """Build ``assets * findings`` rows with one blank Asset Name row per 25."""
    rng = np.random.default_rng(seed)
    records = []
    row_id = 1
    for a in range(assets):
        asset_name = f"{rng.integers(10, 99)}-{rng.integers(100, 999)}-{a:04d}"
        for _ in range(findings):
            records.append({
                "ID": row_id,
                "Inspection Date(Report)": pd.Timestamp("2024-01-01") + pd.Timedelta(days=int(rng.integers(0, 365))),
                "Asset Name": asset_name if row_id % 25 else None,
                "Route(Asset)": f"SR-{rng.integers(1, 500)}",
                "Feature Crossed(Asset)": rng.choice(["Creek", "River", "Railroad", "Highway"]),
                "District(Report)": int(rng.integers(1, 12)),
                "Bridge Component(Report)": rng.choice(COMPONENTS),
                "Repair Category(Report)": rng.choice(CATEGORIES),
                "Description of Issue(Report)": rng.choice(ISSUES),
                "Workflow Stage": rng.choice(STAGES),
            })
            row_id += 1
    return pd.DataFrame(records, columns=COLUMNS)


def create_workbook(output_path: Path, assets: int, findings: int, seed: int = 42) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df = generate_inspection_rows(assets, findings, seed)
    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name="Inspections", index=False)
    print(f"Created workbook: {output_path}")
    print(f"  Rows: {len(df)}  Assets: {assets}")


def create_sorter_files(folder: Path, count: int, seed: int = 42) -> None:
    """Create ``count`` files with identifiers and a few without."""
    rng = np.random.default_rng(seed)
    folder.mkdir(parents=True, exist_ok=True)
    for i in range(count):
        ident = (
            f"{rng.integers(10, 99)}-{rng.integers(100, 999)}-{rng.integers(1000, 9999)}"
            f"-{rng.integers(10, 99)}-{rng.integers(100, 999)}"
        )
        name = f"Inspection-0-{ident}.pdf" if i % 2 else f"{ident} photo {i}.jpg"
        (folder / name).write_bytes(b"sample")
    for i in range(max(1, count // 5)):
        (folder / f"notes_{i}.txt").write_text("no identifier here", encoding="utf-8")
    print(f"Created {count} identifier files (+ {max(1, count // 5)} without) in {folder}")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate sample data for wps-tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s sample/inspections.xlsx
  %(prog)s sample/inspections.xlsx --assets 20 --findings 5 --files sample/incoming --file-count 30
        """,
    )
    parser.add_argument("output", type=Path, help="Output workbook path")
    parser.add_argument("--assets", type=int, default=10, help="Number of assets (default: 10)")
    parser.add_argument("--findings", type=int, default=4, help="Findings per asset (default: 4)")
    parser.add_argument("--files", type=Path, default=None, help="Also create sorter sample files in this folder")
    parser.add_argument("--file-count", type=int, default=20, help="Number of identifier files (default: 20)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    args = parser.parse_args()

    if args.assets <= 0 or args.findings <= 0:
        print("Error: --assets and --findings must be positive", file=sys.stderr)
        return 1

    try:
        create_workbook(args.output, args.assets, args.findings, args.seed)
        if args.files is not None:
            create_sorter_files(args.files, args.file_count, args.seed)
    except OSError as e:
        print(f"\nError generating sample data: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
