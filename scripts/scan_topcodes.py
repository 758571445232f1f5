#!/usr/bin/env python3
"""
TopCode scanning CLI

Thin wrapper over `topcodes.Scanner`: loads an image with Pillow, scans it,
and emits the detections as JSON on stdout.

USAGE:
    # Scan one image and print detections
    python scripts/scan_topcodes.py scan --image photos/table.png

    # Overhead webcam frame; keep a summary, provenance and timings next to it
    python scripts/scan_topcodes.py scan \\
        --image frames/frame_0001.png \\
        --profile tabletop \\
        --out data/scans/frame_0001.json

    # Inspect what the adaptive threshold made of the image
    python scripts/scan_topcodes.py scan \\
        --image photos/table.png \\
        --threshold-image data/scans/table_threshold.png

    # List every valid code
    python scripts/scan_topcodes.py codes
"""

import sys
import json
from dataclasses import asdict
from pathlib import Path
from typing import Optional

# Ensure project root is on PYTHONPATH so we can import topcodes/*
HERE = Path(__file__).resolve()
ROOT = HERE.parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import click
import numpy as np
from PIL import Image

from topcodes import PixelBuffer, PixelBufferError, Scanner, valid_codes
from topcodes.contracts import TOPCODE_DETECTIONS_CONTRACT
from topcodes.profiles import PROFILES, as_policy_dict, params_for
from topcodes.registry import REGISTRIES
from topcodes.utils.provenance import append_timings, write_provenance


def emit_json(d: dict, pretty: bool = True):
    """Print dict as JSON."""
    print(json.dumps(d, indent=2) if pretty else json.dumps(d))


def load_buffer(image_path: Path) -> PixelBuffer:
    with Image.open(image_path) as pil:
        arr = np.asarray(pil.convert("RGB"))
    return PixelBuffer.from_array(arr, layout="RGB")


@click.group()
def cli():
    """TopCode fiducial marker tools."""


@cli.command("scan")
@click.option(
    "--image", type=click.Path(exists=True, dir_okay=False, path_type=Path), required=True,
    help="Image to scan (any format Pillow reads)"
)
@click.option(
    "--out", type=click.Path(dir_okay=False, path_type=Path), default=None,
    help="Also write the summary JSON here (provenance/timings go alongside)"
)
@click.option(
    "--profile", type=click.Choice(sorted(PROFILES)), default="default", show_default=True,
    help="Marker size preset"
)
@click.option(
    "--max-diameter", type=float, default=None,
    help="Largest marker diameter in pixels (overrides the profile)"
)
@click.option(
    "--registry", type=click.Choice(sorted(REGISTRIES)), default="linear", show_default=True,
    help="Overlap registry implementation"
)
@click.option(
    "--threshold-image", type=click.Path(dir_okay=False, path_type=Path), default=None,
    help="Save the binary threshold map as a PNG"
)
def cmd_scan(
    image: Path,
    out: Optional[Path],
    profile: str,
    max_diameter: Optional[float],
    registry: str,
    threshold_image: Optional[Path],
):
    """Scan an image for TopCodes."""
    try:
        params = params_for(profile, registry=registry)
        scanner = Scanner(params)
        if max_diameter is not None:
            scanner.set_max_code_diameter(max_diameter)

        buffer = load_buffer(image)
        found = scanner.scan(buffer)
    except (OSError, PixelBufferError, ValueError) as e:
        click.echo(f"Error scanning {image}: {e}", err=True)
        sys.exit(1)

    summary = {
        **TOPCODE_DETECTIONS_CONTRACT,
        "image": str(image),
        "width": buffer.width,
        "height": buffer.height,
        "profile": profile,
        "params": asdict(scanner.params),
        "count": len(found),
        "detections": [t.to_dict() for t in found],
    }
    emit_json(summary, pretty=True)

    if threshold_image is not None:
        threshold_image.parent.mkdir(parents=True, exist_ok=True)
        Image.fromarray(scanner.binary_map.to_image()).save(threshold_image)
        click.echo(f"Threshold map saved: {threshold_image}", err=True)

    if out is not None:
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(json.dumps(summary, indent=2))
        write_provenance(
            out.parent,
            extra={"image": str(image), "params": asdict(scanner.params), "policy": as_policy_dict()},
        )
        append_timings(
            out.parent,
            component="scan",
            timings=scanner.timings,
            extra={"image": str(image), "rejections": dict(scanner.rejections)},
        )
        click.echo(f"\n✅ Scan complete: {len(found)} marker(s) -> {out}", err=True)


@cli.command("codes")
@click.option("--sectors", type=int, default=13, show_default=True, help="Data bits per marker")
@click.option("--bits", type=int, default=5, show_default=True, help="Set bits required by the checksum")
def cmd_codes(sectors: int, bits: int):
    """List every canonical code that passes the checksum."""
    if not 0 < bits <= sectors:
        click.echo(f"Error: --bits must be in [1, {sectors}]", err=True)
        sys.exit(1)
    codes = valid_codes(sectors, bits)
    emit_json({"sectors": sectors, "checksum_bits": bits, "count": len(codes), "codes": codes})


if __name__ == "__main__":
    cli()
