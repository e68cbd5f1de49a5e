#!/usr/bin/env python3
"""
Check a file of reported number sets: count the power-of-two pairwise sums

Each line is "<expected_pair_count> <n1> <n2> ...".  Pair sums are tested
with sympy factorisation rather than the solver's bit trick, so a bug in one
does not hide in the other.
"""

import sys
from itertools import combinations

import sympy


def is_power_of_two_sympy(s):
    """True iff s = 2^e for some e >= 0 (1 has an empty factorisation)."""
    if s < 1:
        return False
    return set(sympy.factorint(s)) <= {2}


def power_pairs(numbers):
    """Return [(a, b, a+b)] for every power-of-two pair, a < b."""
    pairs = []
    for a, b in combinations(sorted(numbers), 2):
        if is_power_of_two_sympy(a + b):
            pairs.append((a, b, a + b))
    return pairs


def check_line(expected, numbers):
    """Recount the pairs of one reported set."""
    pairs = power_pairs(numbers)
    distinct = len(set(numbers)) == len(numbers)
    return {
        'expected': expected,
        'numbers': sorted(numbers),
        'size': len(numbers),
        'distinct': distinct,
        'pairs': pairs,
        'pair_count': len(pairs),
        'is_valid': distinct and len(pairs) == expected,
    }


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    filename = argv[0] if argv else 'power_pairs.txt'

    print(f"Checking power-of-two pairs in {filename}...")
    print("=" * 70)

    errors = []
    checked = 0

    with open(filename, 'r') as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line: continue
            if line[0] == "#": continue

            parts = line.split()
            if len(parts) < 2:
                print(f"Line {line_num}: Invalid format - {line}")
                continue

            try:
                expected = int(parts[0])
                numbers = [int(p) for p in parts[1:]]
            except ValueError as e:
                print(f"Line {line_num}: Error parsing '{line}' - {e}")
                continue

            result = check_line(expected, numbers)
            checked += 1

            if not result['is_valid']:
                errors.append((line_num, result))
                print(f"\n❌ FAILED at line {line_num}:")
                print(f"   numbers = {result['numbers']}")
                if not result['distinct']:
                    print(f"   Numbers are not distinct")
                print(f"   Expected {expected} pairs, found {result['pair_count']}")
            else:
                sums = " ".join(f"{a}+{b}={s}" for a, b, s in result['pairs'])
                print(f"N = {result['size']} pairs = {result['pair_count']}: {sums}")

    print("\n" + "=" * 70)
    print(f"Checked {checked} sets")

    if errors:
        print(f"\n⚠️  Found {len(errors)} ERRORS:")
        for line_num, result in errors:
            print(f"   Line {line_num}: expected={result['expected']} found={result['pair_count']}")
    else:
        print("\n✓ All sets have the reported number of power-of-two pairs!")

    return len(errors) == 0


def cli():
    sys.exit(0 if main() else 1)


if __name__ == '__main__':
    cli()
