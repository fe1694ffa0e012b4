import argparse
import logging
import sys
import dice
import die_logging
import die_model
import die_roll
import die_shapes
import die_stl


def parse_args(argv):
    parser = argparse.ArgumentParser(
        prog="make-die",
        description="Build a die with rounded edges and numbered faces",
    )
    parser.add_argument("shape", help=f"One of {', '.join(die_shapes.SHAPES)}")
    parser.add_argument(
        "-r",
        "--rounding",
        type=float,
        help="Radius of the rounded edges and corners",
    )
    parser.add_argument(
        "-d", "--detail", type=int, help="Number of flat segments per edge"
    )
    parser.add_argument(
        "-t",
        "--texture",
        default="labels",
        choices=dice.TEXTURES,
        help="Numbered faces or a noise pattern",
    )
    parser.add_argument(
        "-s", "--seed", type=int, default=0, help="Seed of the noise pattern"
    )
    parser.add_argument("--stl", help="Write the rounded die to this STL file")
    parser.add_argument(
        "--hull-stl", help="Write the sharp polyhedron to this STL file"
    )
    parser.add_argument("--png", help="Write the texture to this PNG file")
    parser.add_argument(
        "-o",
        "--orientation",
        type=float,
        nargs=4,
        metavar=("X", "Y", "Z", "W"),
        help="Print the value shown by a die at rest in this orientation",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Show debug messages"
    )
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    die_logging.setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        cache = dice.DieCache(args.seed)
        die = cache.get(args.shape, args.rounding, args.detail, args.texture)
    except (ValueError, die_model.ConstructionError) as e:
        print(e)
        return 1

    model = die.model
    print(
        f"{args.shape}: {len(model.faces)} faces, {len(model.edges)} edges, "
        f"{len(model.vertices)} vertices"
    )
    print(
        f"rounding {die.rounding}, edge detail {die.edge_detail}, "
        f"texture {die.texture.width}x{die.texture.height}"
    )

    if args.stl:
        die_stl.write_stl(die.geometry, args.stl)
        print(f"Wrote out {args.stl}")
    if args.hull_stl:
        die_stl.write_hull_stl(model, args.hull_stl)
        print(f"Wrote out {args.hull_stl}")
    if args.png:
        die.texture.write_png(args.png)
        print(f"Wrote out {args.png}")

    if args.orientation:
        value = die_roll.resolve(
            args.orientation, True, 0.0, 0.0, model, die.results
        )
        if value is None:
            print("No face is down")
        else:
            print(f"Rolled {value}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
