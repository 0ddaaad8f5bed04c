import argparse
import logging
from pathlib import Path
import os
import sys

# Ensure repository root is on sys.path so `from polyviz...` works when running
# this script directly (e.g. `python scripts/make_image.py`).
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from PIL import Image

from polyviz.config import load_render_config, ALPHA_POLICIES, RESAMPLE_MODES
from polyviz.polynomial import InvalidDegreeError, Polynomial, find_roots, format_complex
from polyviz.render import DomainColoringRenderer, Viewport
from polyviz.utils import parse_complex, parse_complex_list


def build_parser():
    parser = argparse.ArgumentParser(description="Render a domain-colored polynomial to PNG")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--coeffs", type=str, nargs="+",
                        help="ascending coefficients, e.g. '--coeffs -1 0 0 1' or "
                             "'--coeffs=-1,0,0,1' for z^3 - 1")
    source.add_argument("--roots", type=str, nargs="+",
                        help="roots, e.g. '--roots 1 -1 2i' or '--roots=1,-1,-2i'")
    parser.add_argument("--leading", type=str, default="1",
                        help="leading coefficient when using --roots")
    parser.add_argument("--center", type=str, default="0")
    parser.add_argument("--scale", type=float, default=5 / 800,
                        help="complex units per pixel")
    parser.add_argument("--width", type=int, default=800)
    parser.add_argument("--height", type=int, default=600)
    parser.add_argument("--config", type=str, default=None,
                        help="YAML render config (e.g. configs/render.yaml)")
    parser.add_argument("--falloff", type=float, default=None)
    parser.add_argument("--policy", type=str, default=None, choices=ALPHA_POLICIES)
    parser.add_argument("--resample", type=str, default=None, choices=RESAMPLE_MODES)
    parser.add_argument("--outfile", type=str, required=True)
    parser.add_argument("--verbose", action="store_true")
    return parser


def _parse_values(tokens):
    """Space separated and/or comma separated complex literals."""
    values = []
    for token in tokens:
        values.extend(parse_complex_list(token))
    return values


def main(argv=None):
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.coeffs is not None:
        poly = Polynomial(_parse_values(args.coeffs)).trimmed(min_length=2)
    else:
        poly = Polynomial.from_roots(_parse_values(args.roots), parse_complex(args.leading))

    config = load_render_config(args.config).with_overrides(
        light_falloff=args.falloff,
        alpha_policy=args.policy,
        resample=args.resample,
    )
    viewport = Viewport(center=parse_complex(args.center), scale=args.scale)

    out_path = Path(args.outfile)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    print(f"[run] p(z) = {poly}")
    try:
        root_set = find_roots(poly)
    except InvalidDegreeError as e:
        print(f"[run] no roots: {e}")
    else:
        roots = ", ".join(format_complex(r) for r in root_set.roots)
        print(f"[run] roots ({root_set.method}, converged={root_set.converged}): {roots}")

    renderer = DomainColoringRenderer(config)
    frame = renderer.render(args.width, args.height, viewport, poly.coefficients)

    Image.fromarray(frame).save(out_path)
    print(f"[run] saved {args.width}x{args.height} ({config.alpha_policy}) to {out_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
