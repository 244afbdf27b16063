#!/usr/bin/env python3
"""
Compute alpha / gamma diversity of phytoplankton monitoring data and write
a gridded CF-1.8 NetCDF time series plus tab-separated summary tables.

Input is either a merged occurrence table (CSV / TSV) or, with --dwca, an
extracted Darwin Core archive directory.
"""

import argparse
import logging
import os
import sys

from .config import PipelineConfig, load_config
from .errors import PhytodivError
from .pipeline import run_pipeline, write_outputs
from .reader import read_dwca, read_table

LOGGER = logging.getLogger("phytodiv")


def setup_logging(output_dir, log_name="phytodiv.log"):
    """Log to a file in output_dir (DEBUG) and to the console (INFO)."""
    os.makedirs(output_dir, exist_ok=True)
    LOGGER.setLevel(logging.DEBUG)
    LOGGER.handlers.clear()

    log_path = os.path.join(output_dir, log_name)
    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    fh = logging.FileHandler(log_path, mode="w", encoding="utf-8")
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(formatter)
    LOGGER.addHandler(fh)

    ch = logging.StreamHandler()
    ch.setLevel(logging.INFO)
    ch.setFormatter(formatter)
    LOGGER.addHandler(ch)

    LOGGER.info("Log file: %s", log_path)
    return log_path


def build_parser():
    parser = argparse.ArgumentParser(
        description="Phytoplankton alpha/gamma diversity to gridded CF-1.8 NetCDF."
    )
    parser.add_argument("--input", "-i", required=True,
                        help="Merged occurrence table (.csv/.tsv) or, with --dwca, "
                             "an extracted Darwin Core archive directory")
    parser.add_argument("--dwca", action="store_true",
                        help="Treat --input as a Darwin Core archive directory")
    parser.add_argument("--output-dir", "-o", required=True,
                        help="Directory for NetCDF, TSV and log output")
    parser.add_argument("--config", "-c", default=None,
                        help="JSON file with configuration overrides")
    parser.add_argument("--years", default=None,
                        help="Years to include, e.g. 2000-2010 or 2001,2004-2006")
    parser.add_argument("--distance-threshold", type=float, default=None,
                        help="Station clustering cut height in metres (default 20000)")
    parser.add_argument("--alpha-min-depth", type=int, default=None,
                        help="Per-sample rarefaction retention floor (default 10000)")
    parser.add_argument("--gamma-min-depth", type=int, default=None,
                        help="Per-month rarefaction retention floor (default 0)")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed for the rarefaction draw")
    parser.add_argument("--basename", default="phytoplankton_diversity",
                        help="Output file name stem")
    return parser


def resolve_config(args):
    config = PipelineConfig()
    if args.config:
        config = load_config(args.config, base=config)
    return config.updated(
        years=args.years,
        distance_threshold_m=args.distance_threshold,
        alpha_min_depth=args.alpha_min_depth,
        gamma_min_depth=args.gamma_min_depth,
        seed=args.seed,
    )


def main(argv=None):
    """Main processing function."""
    args = build_parser().parse_args(argv)
    setup_logging(args.output_dir)

    try:
        config = resolve_config(args)
        LOGGER.info("Configuration: %s", config)

        raw = read_dwca(args.input) if args.dwca else read_table(args.input)
        result = run_pipeline(raw, config)
        paths = write_outputs(result, args.output_dir, config, basename=args.basename)
    except (PhytodivError, OSError) as e:
        LOGGER.error("%s", e)
        return 1

    for kind, path in paths.items():
        LOGGER.info("%-8s %s", kind, path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
