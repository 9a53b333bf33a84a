"""qrstyle CLI: render styled QR codes and check that they still scan."""

import argparse
import sys
from pathlib import Path

from PIL import Image

from qrstyle.errors import QRStyleError
from qrstyle.logging import audit, get_logger, setup_logging
from qrstyle.shapes import FinderStyle, ModuleStyle

log = get_logger("cli")


def _parse_hex_color(s: str) -> tuple[int, ...]:
    """Parse a hex colour (with or without '#', RGB or RGBA) to a tuple."""
    s = s.lstrip("#")
    if len(s) not in (6, 8):
        raise argparse.ArgumentTypeError(f"expected RRGGBB or RRGGBBAA, got {s!r}")
    try:
        return tuple(int(s[i : i + 2], 16) for i in range(0, len(s), 2))
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a hex colour: {s!r}") from None


def _shape_label(config) -> str:
    if not config.styled:
        return "plain"
    return config.module_style.value if config.module_style else "rectangle"


def cmd_render(args):
    """Render a styled QR code to a PNG file."""
    from qrstyle.logo import load_logo
    from qrstyle.session import RenderConfig, build_session

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)

    background = (255, 255, 255, 0) if args.transparent else args.bg
    fore_image = None
    if args.fore_image:
        with Image.open(args.fore_image) as img:
            fore_image = img.convert("RGBA")

    config = RenderConfig(
        size=args.size,
        level=args.ecc,
        foreground=args.fg,
        background=background,
        fore_image=fore_image,
        finder_image_color=args.finder_image_color,
        module_style=args.shape,
        ratio=args.ratio,
        finder_outside=args.finder_outside,
        finder_inside=args.finder_inside,
        logo=load_logo(args.logo) if args.logo else None,
        logo_border=args.logo_border,
        border=args.border,
        quiet_zone=args.quiet_zone,
    )

    session = build_session(args.text, config)
    try:
        output.write_bytes(session.to_png(config.border))
    except QRStyleError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    print(f"Rendered: {output} ({config.size}x{config.size})")
    print(f"  ECC: {config.level.name}, Shape: {_shape_label(config)} @ {config.ratio:.2f}, "
          f"Finder: {config.finder_outside.value}/{config.finder_inside.value}")

    if args.verify:
        from qrstyle.verify import verify

        with Image.open(output) as img:
            results = verify(img, expected_data=args.text)
        for r in results:
            status = "PASS" if r.success else "FAIL"
            print(f"  [{r.decoder:12s}] {status} | {r.decode_time_ms:6.1f}ms | {r.decoded_data or r.error}")
        if not any(r.success for r in results):
            sys.exit(1)


def cmd_verify(args):
    """Verify a QR code image."""
    from qrstyle.verify import verify

    with Image.open(args.image) as img:
        results = verify(img, expected_data=args.expected)

    all_pass = True
    for r in results:
        status = "PASS" if r.success else "FAIL"
        if not r.success:
            all_pass = False
        print(f"  [{r.decoder:12s}] {status} | {r.decode_time_ms:6.1f}ms | {r.decoded_data or r.error}")

    sys.exit(0 if all_pass else 1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="qrstyle", description="qrstyle: styled QR code renderer")

    # Global logging flags
    parser.add_argument("-V", "--verbose", action="store_true", help="Enable DEBUG-level logging")
    parser.add_argument("--log-file", default=None, help="Write JSON logs to file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    module_styles = [s.value for s in ModuleStyle]
    finder_styles = [s.value for s in FinderStyle]

    # --- render ---
    p_render = subparsers.add_parser("render", help="Render a styled QR code")
    p_render.add_argument("text", help="Text or URL to encode")
    p_render.add_argument("-o", "--output", default="output/qr.png", help="Output PNG path")
    p_render.add_argument("-s", "--size", type=int, default=500, help="Output side in pixels")
    p_render.add_argument("-e", "--ecc", default="H", choices=["L", "M", "Q", "H"], help="Error correction level")
    p_render.add_argument("--shape", default=None, choices=module_styles,
                          help="Module shape (omit for the plain encoder rendering)")
    p_render.add_argument("--ratio", type=float, default=1.0, help="Module fill ratio, 0.1-1.0")
    p_render.add_argument("--finder-outside", default="rectangle", choices=finder_styles,
                          help="Finder ring style")
    p_render.add_argument("--finder-inside", default="rectangle", choices=finder_styles,
                          help="Finder centre style")
    p_render.add_argument("--fg", type=_parse_hex_color, default=(0, 0, 0), help="Foreground colour (hex)")
    p_render.add_argument("--bg", type=_parse_hex_color, default=(255, 255, 255), help="Background colour (hex)")
    p_render.add_argument("--transparent", action="store_true", help="Fully transparent background")
    p_render.add_argument("--fore-image", default=None, help="Image to sample module colours from")
    p_render.add_argument("--finder-image-color", action="store_true",
                          help="Colour finder patterns from --fore-image too")
    p_render.add_argument("--logo", default=None, help="Logo image to place in the centre (needs ECC Q or H)")
    p_render.add_argument("--logo-border", action="store_true", help="Pad the logo with background colour")
    p_render.add_argument("--border", action=argparse.BooleanOptionalAction, default=True,
                          help="Draw a background-coloured quiet zone")
    p_render.add_argument("--quiet-zone", type=int, default=1, help="Quiet zone width in modules")
    p_render.add_argument("--verify", action="store_true", help="Decode the result and report")

    # --- verify ---
    p_ver = subparsers.add_parser("verify", help="Verify a QR code image")
    p_ver.add_argument("image", help="Path to QR code image")
    p_ver.add_argument("--expected", default=None, help="Expected decoded data (fails if mismatch)")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    # Setup logging before any command runs
    level = "DEBUG" if args.verbose else "WARNING"
    setup_logging(level=level, log_file=args.log_file)
    audit("cli.start", logger=log, command=args.command, verbose=args.verbose)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    commands = {
        "render": cmd_render,
        "verify": cmd_verify,
    }
    commands[args.command](args)
    audit("cli.done", logger=log, command=args.command)


if __name__ == "__main__":
    main()
