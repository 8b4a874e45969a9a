#!/usr/bin/env python3
"""Example: how operator input resolves into a restriction.

Runs entirely offline: shows alias lookup, ``all`` expansion, exclusion
precedence and the directory wire form.

Usage:
    python examples/02_resolving_restrictions.py
"""
from __future__ import annotations

import aumos_data_residency as residency


def main() -> None:
    # Aliases are case-insensitive and map to one canonical code.
    for token in ("Europe", "EU", "xe", "uk", "Google"):
        for axis in residency.AxisKind:
            try:
                code = residency.resolve_alias(axis, token)
            except residency.UnknownIdentifierError:
                continue
            print(f"{token!r:>10} -> {axis.value}:{code}")

    # An empty allow-list means every code; exclusions always win.
    regions = residency.resolve(residency.AxisKind.REGION, [], ["asia", "prc"])
    print(f"\nRegions allowed: {sorted(regions.effective)}")
    print(f"Regions denied:  {sorted(regions.exclude)}")

    providers = residency.resolve(residency.AxisKind.PROVIDER, ["aws,gcp"], ["amazon"])
    print(f"Providers allowed: {sorted(providers.effective)}")

    # Directories travel as URL-safe base64 with padding.
    directory = residency.DirectoryId.from_raw("team/reports")
    print(f"\nDirectory wire form: {directory.wire}")
    print(f"Decoded again:       {residency.decode(directory.wire)!r}")

    record = residency.build_restriction("locks", directory, region=["eu", "uk"])
    print(f"\nPUT {record.path}")
    print(record.to_details())


if __name__ == "__main__":
    main()
