"""CLI entry point for HaloForge."""

import argparse
import logging
import sys
from pathlib import Path

from . import caption
from .errors import HaloForgeError
from .morphology import Norm


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Draw outlined caption text onto an image"
    )
    parser.add_argument("input", help="Source image file (any Pillow format)")
    parser.add_argument("text", help="Caption text")
    parser.add_argument(
        "--font", "-f", required=True,
        help="TrueType/OpenType file or directory of glyph_*.svg files"
    )
    parser.add_argument(
        "--output", "-o", default="caption.png",
        help="Output PNG path (default: caption.png)"
    )
    parser.add_argument(
        "--fill", nargs=4, type=int, default=None,
        metavar=("R", "G", "B", "A"),
        help="Text fill color (default: 255 128 0 255)"
    )
    parser.add_argument(
        "--outline", nargs=4, type=int, default=None,
        metavar=("R", "G", "B", "A"),
        help="Halo color (default: 0 0 0 255)"
    )
    parser.add_argument(
        "--radius", "-r", type=int, default=None,
        help="Halo radius in pixels (default: 4)"
    )
    parser.add_argument(
        "--norm", choices=[n.value for n in Norm], default=None,
        help="Halo distance metric (default: linf)"
    )
    parser.add_argument(
        "--scale", "-s", nargs="+", type=float, default=None,
        metavar="S",
        help="Text size: fraction of image size if <= 1, else pixels; "
             "one value or X Y (default: 0.1)"
    )
    parser.add_argument(
        "--anchor", "-a", nargs=2, type=float, default=None,
        metavar=("X", "Y"),
        help="Text position: inset fraction if < 1, else pixels "
             "(default: 0.1 0.1)"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Log each pipeline stage"
    )

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    kwargs = {}
    if args.fill:
        kwargs["fill_color"] = tuple(args.fill)
    if args.outline:
        kwargs["outline_color"] = tuple(args.outline)
    if args.radius is not None:
        kwargs["outline_radius"] = args.radius
    if args.norm:
        kwargs["norm"] = Norm(args.norm)
    if args.scale:
        if len(args.scale) > 2:
            parser.error("--scale takes one or two values")
        kwargs["scale"] = args.scale[0] if len(args.scale) == 1 \
            else tuple(args.scale)
    if args.anchor:
        kwargs["anchor"] = tuple(args.anchor)

    try:
        data = caption(
            image_bytes=Path(args.input).read_bytes(),
            text=args.text,
            font=args.font,
            **kwargs,
        )
    except (HaloForgeError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(data)
    print(f"Saved caption ({len(data)} bytes) to {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
