"""
Faraday's Electromagnetic Lab command-line tool.

Usage:
    felab field 400 300 --rotation 0.5 --units T
    felab induce --loops 3 --area 80 --speed 10 --steps 60
    felab grids data/field_grids
    felab plot --output images
    felab --config lab.json induce --json
"""

import argparse
import json
import math
import sys
from pathlib import Path
from typing import List, Optional

from .config import LabConfig, MagneticUnits
from .field import save_field_grids, tabulate_bar_magnet_grids
from .field_meter import convert_field
from .geometry import angle_of, magnitude
from .models import BarMagnetScreenModel, PickupCoilScreenModel, sweep_bar_magnet


def cmd_field(args, config: LabConfig):
    model = BarMagnetScreenModel(config)
    magnet = model.bar_magnet
    magnet.position = (0.0, 0.0)
    magnet.rotation = args.rotation
    if args.strength is not None:
        magnet.strength = args.strength

    B = magnet.get_field_vector((args.x, args.y))
    units = MagneticUnits(args.units) if args.units else config.magnetic_units
    B_units = convert_field(B, units)

    print(f"Bar magnet at origin, rotation {args.rotation:.3f} rad, strength {magnet.strength:.1f} G")
    print(f"Point ({args.x:g}, {args.y:g}){' (inside magnet)' if magnet.is_inside((args.x, args.y)) else ''}")
    print(f"  Bx = {B_units[0]:.6g} {units.value}")
    print(f"  By = {B_units[1]:.6g} {units.value}")
    print(f"  |B| = {magnitude(B_units):.6g} {units.value}")
    print(f"  angle = {math.degrees(angle_of(B)):.2f} deg")


def cmd_induce(args, config: LabConfig):
    model = PickupCoilScreenModel(config)
    coil = model.pickup_coil
    coil.coil.number_of_loops = args.loops
    coil.coil.loop_area_percent = args.area

    start_x = args.start if args.start is not None else coil.position[0] - args.speed * args.steps / 2
    trace = sweep_bar_magnet(model, args.speed, args.steps, start_x=start_x)

    if args.json:
        print(json.dumps({'trace': trace, 'largest_emf': coil.calibrate_max_emf()}, indent=2))
        return

    print(f"Pickup coil: {coil.number_of_loops} loops, area {coil.loop_area:.0f}, "
          f"{len(coil.sample_points)} sample points")
    print("=" * 96)
    print(f"{'step':>5} {'magnet x':>9} {'avg Bx':>9} {'flux':>12} {'delta flux':>12} "
          f"{'emf':>12} {'amplitude':>9} {'bulb':>6} {'volts':>7}")
    for r in trace:
        print(f"{r['step']:>5} {r['magnet_x']:>9.1f} {r['average_bx']:>9.2f} {r['flux']:>12.4g} "
              f"{r['delta_flux']:>12.4g} {r['emf']:>12.4g} {r['current_amplitude']:>9.3f} "
              f"{r['brightness']:>6.3f} {math.degrees(r['voltmeter_angle']):>7.2f}")
    print("=" * 96)
    print(f"Largest |emf|: {coil.calibrate_max_emf():.4g} (max_emf = {coil.max_emf:.4g})")


def cmd_grids(args, config: LabConfig):
    size = config.bar_magnet_screen.bar_magnet.size
    print(f"Tabulating bar magnet grids for size {size[0]:g} x {size[1]:g}...")
    data = tabulate_bar_magnet_grids(tuple(size))
    save_field_grids(data, args.output)
    for name, grid in data.grids().items():
        print(f"  {name}: {grid.columns} x {grid.rows}, spacing {grid.spacing:g}")
    print(f"Saved to {args.output}/")


def cmd_plot(args, config: LabConfig):
    # matplotlib is only needed here
    from .visualize import generate_visualizations

    print("Field and Induction Visualization")
    print("=" * 50)
    files = generate_visualizations(args.output, config, speed=args.speed, steps=args.steps)
    print(f"\nSaved {len(files)} files to {args.output}/")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Faraday's Electromagnetic Lab model tools"
    )
    parser.add_argument(
        '--config', type=str,
        help='Path to a LabConfig JSON file'
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    p = subparsers.add_parser('field', help='Bar magnet field at a point')
    p.add_argument('x', type=float)
    p.add_argument('y', type=float)
    p.add_argument('--rotation', type=float, default=0.0, help='Magnet rotation (radians)')
    p.add_argument('--strength', type=float, help='Magnet strength (G)')
    p.add_argument('--units', choices=[u.value for u in MagneticUnits], help='Output units')
    p.set_defaults(func=cmd_field)

    p = subparsers.add_parser('induce', help='Sweep the bar magnet through the pickup coil')
    p.add_argument('--loops', type=int, default=2, help='Number of loops')
    p.add_argument('--area', type=float, default=50.0, help='Loop area percent')
    p.add_argument('--speed', type=float, default=10.0, help='Magnet displacement per step')
    p.add_argument('--steps', type=int, default=60, help='Number of steps')
    p.add_argument('--start', type=float, help='Starting magnet x')
    p.add_argument('--json', action='store_true', help='Output results as JSON')
    p.set_defaults(func=cmd_induce)

    p = subparsers.add_parser('grids', help='Write the tabulated bar magnet grids as CSV')
    p.add_argument('output', type=str, help='Output directory')
    p.set_defaults(func=cmd_grids)

    p = subparsers.add_parser('plot', help='Render field and induction plots')
    p.add_argument('--output', '-o', type=str, default='images', help='Output directory for images')
    p.add_argument('--speed', type=float, default=10.0)
    p.add_argument('--steps', type=int, default=60)
    p.set_defaults(func=cmd_plot)

    return parser


def main(argv: Optional[List[str]] = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.config:
        config_path = Path(args.config)
        if not config_path.exists():
            print(f"Error: Config file not found: {config_path}")
            sys.exit(1)
        config = LabConfig.load(str(config_path))
    else:
        config = LabConfig()

    try:
        args.func(args, config)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
