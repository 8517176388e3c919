#!/usr/bin/env python3
"""
modgraph CLI

Lay out the graph of squares modulo N in three dimensions and write an
Asymptote scene.

Usage:
    modgraph <modulus> [options]
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .graph.model import ModulusError, parse_modulus


def modulus_arg(text: str) -> int:
    """argparse type for the modulus; rejects bad values before any work starts."""
    try:
        return parse_modulus(text)
    except ModulusError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def seed_arg(text: str) -> int:
    """argparse type for the seed; numpy seeds must be non-negative integers."""
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Seed must be an integer, got {text!r}") from None
    if value < 0:
        raise argparse.ArgumentTypeError(f"Seed must be non-negative, got {value}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="modgraph",
        description="3-D layout of the graph of squares modulo N",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  modgraph 12                          # writes 12.asy
  modgraph 30 --seed 7 -o thirty.asy
  modgraph 20 --strategy simplex --iterations 5000
  modgraph 16 --config tuned.yaml --neato graphs/
        """,
    )
    parser.add_argument('--version', action='version', version=f'modgraph {__version__}')
    parser.add_argument('modulus', type=modulus_arg, help='Modulus N (integer > 1)')
    parser.add_argument('--seed', type=seed_arg, help='Seed for the random initial placement')
    parser.add_argument('--profile', help='Built-in layout profile (default: default)')
    parser.add_argument('--config', help='YAML layout profile file (overrides --profile)')
    parser.add_argument('--strategy', choices=['conjugate_gradient', 'simplex', 'relax'],
                        help='Minimization strategy (default: from profile)')
    parser.add_argument('--iterations', type=int, help='Iteration cap (default: from profile)')
    parser.add_argument('-o', '--output', help='Scene file path (default: <N>.asy)')
    parser.add_argument('--neato', metavar='DIR',
                        help='Also write one neato file per component into DIR')
    parser.add_argument('-v', '--verbose', action='store_true', help='Verbose output')
    parser.add_argument('--dry-run', action='store_true', help="Don't write the scene")
    return parser


def resolve_profile(args):
    """Profile from --config or --profile, with command-line overrides applied."""
    from .layout.profiles import get_profile, load_profile

    if args.config:
        profile = load_profile(args.config)
    else:
        profile = get_profile(args.profile or "default")

    overrides = {}
    if args.strategy:
        overrides["strategy"] = args.strategy
    if args.iterations is not None:
        overrides["max_iterations"] = args.iterations
    return profile.with_overrides(**overrides) if overrides else profile.validate()


def cmd_layout(args) -> int:
    """Run the layout and write outputs."""
    from .layout.engine import LayoutEngine
    from .output.asymptote import scene_filename, write_layout
    from .output.neato import write_components

    try:
        profile = resolve_profile(args)
    except (ValueError, FileNotFoundError) as e:
        print(f"Error: {e}")
        return 2

    engine = LayoutEngine(args.modulus, profile=profile, seed=args.seed)
    graph, partition = engine.graph, engine.partition

    print(f"Modulus {graph.modulus}: {len(partition)} components")
    for component_id, members in enumerate(partition.components):
        preview = ", ".join(str(i) for i in members[:10])
        more = f", ... ({len(members)} nodes)" if len(members) > 10 else ""
        print(f"  [{component_id}] {{{preview}{more}}}")

    if args.neato:
        paths = write_components(graph, partition, args.neato)
        print(f"Wrote {len(paths)} neato files to {args.neato}")

    def progress_callback(state):
        if state.iteration % 50 == 0:
            print(f"  Iteration {state.iteration}: potential={state.potential:.4f}")

    print(f"\nMinimizing potential ({engine.strategy.name}, profile '{profile.name}')...")
    result = engine.run(callback=progress_callback if args.verbose else None)

    minimization = result.minimization
    if minimization.converged:
        print(f"  Converged after {minimization.iterations} iterations")
    else:
        print(f"  Stopped after {minimization.iterations} iterations "
              f"({minimization.status.value}); using best positions found")
    print(f"  Potential: {minimization.initial_potential:.4f} -> {minimization.potential:.4f}")

    output_path = Path(args.output) if args.output else Path(scene_filename(graph.modulus))
    if not args.dry_run:
        write_layout(result, path=output_path)
        print(f"\nSaved scene to: {output_path}")
    else:
        print("\nDry run - not writing scene")

    return 0 if minimization.converged else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    return cmd_layout(args)


if __name__ == '__main__':
    sys.exit(main())
