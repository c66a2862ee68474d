#!/usr/bin/env python3
"""Generate a synthetic carrier workbook for trying out `carrier-ledger import`.

The sheet deliberately mixes the representations seen in real uploads:
- header synonyms in random letter case ("MC #", "carrier", "Approval", ...)
- dates as real dates, workbook serial numbers, MM/DD/YYYY text and blanks
- amounts as numbers and as "$1,234.50" text
- approval tokens YES / y / true / 1 / no / blank
- a sprinkling of blank rows and rows without an MC value
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

HEADER_VARIANTS = {
    "date": ["Date", "DATE", "date"],
    "mc": ["MC", "mc #", "MC Number"],
    "carrier_name": ["Carrier Name", "carrier", "CarrierName"],
    "amount": ["Amount", "AMOUNT ($)", "amount"],
    "approved": ["Approved", "approval", "APPROVED?"],
    "checked_by": ["Checked By", "checker", "CheckedBy"],
    "note": ["Note", "notes", "NOTES"],
}

CARRIERS = ["Acme Freight", "Beta Lines", "Gamma Transport", "Delta Haulers", "Echo Logistics"]
CHECKERS = ["ana", "bo", "cy", "dee"]
APPROVAL_TOKENS = ["YES", "y", "true", "1", "no", "NO", ""]


def _date_cell(rng: np.random.Generator, day: pd.Timestamp) -> Any:
    kind = rng.integers(0, 4)
    if kind == 0:
        return day.to_pydatetime()
    if kind == 1:
        # workbook serial (1900 date system)
        return int((day - pd.Timestamp("1899-12-30")).days)
    if kind == 2:
        return f"{day.month}/{day.day}/{day.year}"
    return None


def _amount_cell(rng: np.random.Generator) -> Any:
    value = round(float(rng.uniform(50, 5000)), 2)
    if rng.random() < 0.5:
        return value
    return f"${value:,.2f}"


def generate_rows(rows: int, seed: int = 42) -> list[list[Any]]:
    """Build header + ``rows`` data rows."""
    rng = np.random.default_rng(seed)
    header = [str(rng.choice(names)) for names in HEADER_VARIANTS.values()]
    days = pd.date_range("2024-01-01", "2024-12-31", periods=120)

    sheet: list[list[Any]] = [header]
    for i in range(rows):
        roll = rng.random()
        if roll < 0.03:
            sheet.append([None] * len(header))
            continue
        mc = None if roll < 0.06 else f"MC{100000 + i}"
        sheet.append([
            _date_cell(rng, days[rng.integers(0, len(days))]),
            mc,
            str(rng.choice(CARRIERS)),
            _amount_cell(rng),
            str(rng.choice(APPROVAL_TOKENS)),
            str(rng.choice(CHECKERS)),
            "quick pay" if rng.random() < 0.2 else None,
        ])
    return sheet


def create_workbook(output_path: Path, rows: int, seed: int = 42) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    sheet = generate_rows(rows, seed)
    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        pd.DataFrame(sheet).to_excel(writer, sheet_name="Carriers", header=False, index=False)
    print(f"Created workbook: {output_path}")
    print(f"  Header: {sheet[0]}")
    print(f"  Data rows: {rows}")


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Generate a synthetic carrier workbook",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s data/sample.xlsx
  %(prog)s data/big.xlsx --rows 5000 --seed 7
        """,
    )
    parser.add_argument("output", type=Path, help="Output .xlsx path")
    parser.add_argument("--rows", type=int, default=200, help="Number of data rows (default: 200)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    args = parser.parse_args()

    if args.rows <= 0:
        print("Error: --rows must be positive", file=sys.stderr)
        return 1
    if args.output.suffix != ".xlsx":
        print("Warning: output file should have .xlsx extension", file=sys.stderr)

    try:
        create_workbook(args.output, args.rows, args.seed)
    except Exception as e:
        print(f"Error creating workbook: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
