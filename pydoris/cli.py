"""
Command-line interface for PyDORIS.

Inspect DORIS observation RINEX files: header metadata, the epochs of
the data blocks and a summary of the whole file.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from pydoris import __version__
from pydoris.core.config import load_settings
from pydoris.core.exceptions import DorisRinexError
from pydoris.rinex.reader import DorisObsRinex
from pydoris.rinex.summary import summarize
from pydoris.utils.dates import format_epoch
from pydoris.utils.logging import setup_logging_from_config


@click.group()
@click.version_option(version=__version__, prog_name="PyDORIS")
@click.option(
    "--config", "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Enable verbose output",
)
@click.option(
    "--debug",
    is_flag=True,
    help="Enable debug mode",
)
@click.pass_context
def cli(ctx: click.Context, config: Path | None, verbose: bool, debug: bool) -> None:
    """PyDORIS: DORIS observation RINEX 3.0 reader

    Read satellite DORIS observation files (RINEX 3.0) and report their
    header metadata and data blocks.
    """
    ctx.ensure_object(dict)

    try:
        settings = load_settings(config)
    except DorisRinexError as e:
        raise click.ClickException(str(e)) from e

    level = None
    if verbose:
        level = "INFO"
    if debug:
        level = "DEBUG"

    setup_logging_from_config(settings.logging, level=level)

    ctx.obj["settings"] = settings
    ctx.obj["verbose"] = verbose
    ctx.obj["debug"] = debug


def _fail(error: DorisRinexError) -> None:
    click.echo(f"Error: {error}", err=True)
    sys.exit(1)


@cli.command()
@click.argument("rinex_file", type=click.Path(exists=True, path_type=Path))
@click.pass_context
def header(ctx: click.Context, rinex_file: Path) -> None:
    """Show the header of a DORIS RINEX file."""
    settings = ctx.obj["settings"]

    try:
        with DorisObsRinex(rinex_file, settings.reader) as rnx:
            click.echo(f"File:              {rinex_file.name}")
            click.echo(f"RINEX version:     {rnx.version}")
            click.echo(f"Program:           {rnx.program}")
            click.echo(f"Satellite:         {rnx.satellite_name} ({rnx.cospar_number})")
            click.echo(
                f"Receiver:          {rnx.rec_chain} {rnx.rec_type} {rnx.rec_version}"
            )
            click.echo(f"Antenna:           {rnx.antenna_number} {rnx.antenna_type}")
            click.echo(
                "Approx. position:  " + " ".join(f"{v:.4f}" for v in rnx.approx_position)
            )
            click.echo(
                "Center of mass:    " + " ".join(f"{v:.4f}" for v in rnx.center_of_mass)
            )
            click.echo(f"First obs:         {format_epoch(rnx.time_of_first_obs)} {rnx.time_system}")
            click.echo(f"Time ref. date:    {format_epoch(rnx.time_ref_stat)}")
            click.echo(f"L2/L1 date offset: {rnx.l2_l1_date_offset} us")
            click.echo(f"Clock offs. appl.: {'yes' if rnx.rcv_clock_offs_applied else 'no'}")

            click.echo("\nObservation types:")
            for code, factor in zip(rnx.obs_codes, rnx.obs_scale_factors):
                scale = f"  (scale {factor})" if factor != 1 else ""
                click.echo(f"  {code}{scale}")

            click.echo(f"\n{'Code':<5} {'ID':<5} {'Name':<30} {'DOMES':<10} {'T':>1} {'K':>4}")
            click.echo("-" * 60)
            for b in rnx.beacons:
                click.echo(
                    f"{b.code:<5} {b.station_id:<5} {b.name[:30]:<30} "
                    f"{b.domes:<10} {b.type:>1} {b.shift_factor:>4}"
                )

            if rnx.time_ref_stations:
                click.echo("\nTime reference beacons:")
                for t in rnx.time_ref_stations:
                    click.echo(f"  {t.code}  bias {t.bias:.3f} us  shift {t.shift:.3f}")
    except DorisRinexError as e:
        _fail(e)


@cli.command()
@click.argument("rinex_file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--values",
    is_flag=True,
    help="Also print the observation values of every beacon",
)
@click.pass_context
def epochs(ctx: click.Context, rinex_file: Path, values: bool) -> None:
    """List the data blocks (epochs) of a DORIS RINEX file."""
    settings = ctx.obj["settings"]
    count = 0

    try:
        with DorisObsRinex(rinex_file, settings.reader) as rnx:
            for block in rnx:
                hdr = block.header
                clock = f"{hdr.clock_offset:.9f}" if hdr.has_clock_offset else "-"
                click.echo(
                    f"{format_epoch(block.epoch)}  flag {hdr.flag}  "
                    f"beacons {hdr.num_stations:3d}  clock {clock}"
                )
                if values:
                    for obs in block.beacon_obs:
                        fields = " ".join(
                            "-" if v.is_missing else f"{v.value:.3f}"
                            for v in obs.values
                        )
                        click.echo(f"    {obs.beacon_id}  {fields}")
                count += 1
    except DorisRinexError as e:
        _fail(e)

    click.echo(f"\nTotal: {count} epochs")


@cli.command()
@click.argument("rinex_file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--json", "as_json",
    is_flag=True,
    help="Output as JSON",
)
@click.pass_context
def summary(ctx: click.Context, rinex_file: Path, as_json: bool) -> None:
    """Summarize a DORIS RINEX file."""
    settings = ctx.obj["settings"]

    try:
        result = summarize(rinex_file, settings.reader)
    except DorisRinexError as e:
        _fail(e)
        return

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        click.echo(result.summary())


def main() -> None:
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
