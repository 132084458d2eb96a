import argparse
import sys

from dcmatrix import Matrix, MultiplicationMethod, configure_logging, get_profiler


def build_square_scenario():
    """4x4 operands: A filled by rows, B filled by columns."""
    a = Matrix(4, 4)
    a.set_row(0, [1, 2, 3, 4])
    a.set_row(1, [2, 3, 4, 1])
    a.set_row(2, [3, 4, 1, 2])
    a.set_row(3, [4, 1, 2, 3])

    b = Matrix(4, 4)
    b.set_column(0, [5, 6, 7, 8])
    b.set_column(1, [6, 7, 8, 5])
    b.set_column(2, [7, 8, 5, 6])
    b.set_column(3, [8, 5, 6, 7])
    return a, b


def build_rectangular_scenario():
    """3x4 by 4x2 operands, exercising the padding and cropping path."""
    c = Matrix(3, 4)
    c.set_row(0, [1, 2, 3, 4])
    c.set_row(1, [2, 3, 4, 1])
    c.set_row(2, [3, 4, 1, 2])

    d = Matrix(4, 2)
    d.set_row(0, [5, 6])
    d.set_row(1, [6, 7])
    d.set_row(2, [7, 8])
    d.set_row(3, [8, 5])
    return c, d


def run_scenario(name, left, right, methods):
    """Multiplies with every requested method; returns True when all results agree."""
    print(f"\n--- {name}: {left.rows}x{left.columns} by {right.rows}x{right.columns} ---")
    results = []
    for method in methods:
        product = left.multiply(right, method=method)
        print(f"{method.value}:")
        print(product, end="")
        results.append(product)

    agree = all(result == results[0] for result in results[1:])
    print("Methods agree." if agree else "Methods DISAGREE!")
    return agree


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Multiply the reference matrices with each multiplication method",
    )
    parser.add_argument(
        '--method',
        choices=[m.value for m in MultiplicationMethod] + ['all'],
        default='all',
        help='Multiplication method to run (default: all)'
    )
    parser.add_argument(
        '--log-level',
        default='WARNING',
        help='Logging level for the dcmatrix logger (default: WARNING)'
    )
    parser.add_argument(
        '--profile',
        action='store_true',
        help='Print the multiplication timing summary'
    )
    args = parser.parse_args(argv)

    configure_logging(level=args.log_level)
    profiler = get_profiler()
    profiler.reset()
    if args.profile:
        profiler.enable()

    if args.method == 'all':
        methods = list(MultiplicationMethod)
    else:
        methods = [MultiplicationMethod(args.method)]

    ok = run_scenario("Square product", *build_square_scenario(), methods)
    ok = run_scenario("Rectangular product", *build_rectangular_scenario(), methods) and ok

    if args.profile:
        profiler.print_summary()
        profiler.disable()

    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
