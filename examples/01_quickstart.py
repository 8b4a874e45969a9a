#!/usr/bin/env python3
"""Example: Quickstart, aumos-data-residency

Minimal working example: restrict a directory to European regions outside
AWS, read the restriction back, and list every restriction on the account.

Usage:
    AUMOS_RESIDENCY_API_KEY=... python examples/01_quickstart.py

Requirements:
    pip install aumos-data-residency
"""
from __future__ import annotations

import os
import sys

import aumos_data_residency as residency


def main() -> None:
    print(f"aumos-data-residency version: {residency.__version__}")

    api_key = os.environ.get("AUMOS_RESIDENCY_API_KEY")
    if not api_key:
        print("Set AUMOS_RESIDENCY_API_KEY to run this example.")
        sys.exit(1)

    # Step 1: Create a controller (one access token for its lifetime)
    controller = residency.ResidencyController(api_key=api_key)

    # Step 2: Restrict a directory
    try:
        record = controller.restrict(
            "config",
            "team/reports",
            region=["eu"],
            exclude_provider=["aws"],
        )
    except residency.ResidencyError as exc:
        print(f"Could not apply restriction: {exc}")
        sys.exit(1)
    print(f"Restricted {record.api.value}/{record.directory.wire}")
    for key, codes in record.to_details().items():
        print(f"  {key}: {', '.join(codes) or '-'}")

    # Step 3: Read it back
    restriction = controller.get("config", "team/reports")
    print(f"\nState: {restriction.state.value}")

    # Step 4: List everything
    print("\nAll restrictions:")
    for item in controller.list_restrictions():
        print(f"  {item.api}/{item.directory_for_display(decode_output=True)}")


if __name__ == "__main__":
    main()
