#!/usr/bin/env python3
# PowerPairs_Solver.py version 1
"""
Power-of-two pair searcher: sets of N integers with many pairwise power sums

Purpose
-------
Find a set of N distinct integers whose pairwise sums hit as many powers of
two as possible.  A "power pair" is two members x != y with x + y = 2^e.
The best known sets for small N are found by combining "power triplets"
(three integers whose three pairwise sums are all powers of two) and then
refining each combination with a local search that swaps the weakest member
for a better one.

Search framework
----------------
1) Triplets.  For a growing radius delta = 1, 2, 3, ... and every power p in
   the power set, take i = +/-delta and j = p - i (so i + j = p), then look
   for k in [-delta, delta] with i + k and j + k both powers of two.  Every
   hit (i, j, k) is a power triplet.  The search stops once the requested
   number of distinct triplets has been collected.  The sorted list is rotated
   by 3/5 of its length so that shards (below) do not all start on the
   structurally similar small triplets.

2) Combinations.  With n triplets and a target size N, every N-combination of
   triplet indices is enumerated in lexicographic order.  The triplets of a
   combination fill a NumberSet until it holds N numbers (later triplets are
   truncated element by element).

3) Hill climbing.  Each filled set is improved by swapping a member with the
   fewest power pairs for a non-member that would make more pairs, until no
   single swap improves the count.  The best set seen is kept.

4) Sharding.  The combination space is split by fixing the first L indices
   (the "combiner level").  Each prefix is one shard; a process pool pulls
   shards one at a time, and the per-shard bests are reduced to the global
   best, which is then simplified (all-even sets are halved).

Operating modes
---------------
  simplified   PowerPairs_Solver.py SET_SIZE [MAX_SET_SIZE]
               Seed each size with a fixed odd-number pattern, then hill-climb
               against powers up to 2^19.
  advanced     PowerPairs_Solver.py TRIPLETS LEVEL MIN_SET_SIZE [MAX_SET_SIZE]
               Generate TRIPLETS power triplets, shard the combination space
               at depth LEVEL and run the parallel search for each size.

How to run
----------
1) Quick heuristic for sizes 10..20:
       python3 PowerPairs_Solver.py 10 20
2) Full search with 40 triplets, 2-level sharding, size 12, 8 workers:
       python3 PowerPairs_Solver.py 40 2 12 --workers 8
3) Verify a reported set independently (sympy):
       python3 PowerPairs_Checker.py found_sets.txt

Use --version to print a machine-readable environment/version block.

Version 1
---------
* Triplet generation, lexicographic combiner, hill-climbing improver
* Two improvement strategies: first (queue the first improving swap) and
  batch (queue every improving best x worst swap)
* Process-pool shard scheduling with a polling progress reporter thread
* Timestamped run log (START / TRIPLETS / SHARDS / progress / DONE / ERROR)
"""

from __future__ import annotations

import argparse
import hashlib
import itertools
import json
import os
import platform
import subprocess
import sys
import threading
import time
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from multiprocessing import get_context
from typing import Dict, FrozenSet, Iterator, List, Optional, Sequence, Set, TextIO, Tuple


program_name, program_version = "PowerPairs_Solver", 1


# ----------------------------- switches (set by args) -----------------------------
DEBUG = False
ASSERTIONS = False
ENV: Dict[str, object] = {}

ADVANCED_POWER_BOUND = 10
SIMPLE_POWER_BOUND = 20
STRATEGIES = ("first", "batch")


# ----------------------------- small utilities -----------------------------
def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()

def sha256_bytes(b: bytes) -> str:
    h = hashlib.sha256()
    h.update(b)
    return h.hexdigest()

def read_self_source(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()

def get_git_commit() -> Optional[str]:
    # Best effort: if this file is inside a git repo, return HEAD commit hash.
    try:
        r = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            capture_output=True,
            text=True,
            check=True,
        )
        s = (r.stdout or "").strip()
        return s if s else None
    except (OSError, subprocess.CalledProcessError):
        return None

def env_block(script_path: str, argv: List[str]) -> Dict[str, object]:
    src = read_self_source(script_path)
    return {
        "script_path": os.path.abspath(script_path),
        "script_sha256": sha256_bytes(src),
        "git_commit": get_git_commit(),
        "command_line": " ".join(argv),
        "python_version": sys.version.replace("\n", " "),
        "platform": platform.platform(),
        "cpu_count": os.cpu_count(),
    }

def default_workers() -> int:
    # One core stays free for the progress reporter.
    return max(1, (os.cpu_count() or 2) - 1)


# ----------------------------- powers of two -----------------------------
def is_power_of_two(number: int) -> bool:
    return number != 0 and (number & (number - 1)) == 0


@dataclass(frozen=True)
class PowerSet:
    """The powers 2^0 .. 2^(bound-1), iterable in increasing order."""
    bound: int
    values: Tuple[int, ...]
    members: FrozenSet[int]

    def __contains__(self, number: object) -> bool:
        return number in self.members

    def __iter__(self) -> Iterator[int]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)


def generate_powers_of_two(bound: int) -> PowerSet:
    values = tuple(1 << e for e in range(max(0, bound)))
    return PowerSet(bound=bound, values=values, members=frozenset(values))


POWERS_OF_TWO = generate_powers_of_two(ADVANCED_POWER_BOUND)
SIMPLE_POWERS_OF_TWO = generate_powers_of_two(SIMPLE_POWER_BOUND)


# ----------------------------- pairs and triplets -----------------------------
@dataclass(frozen=True, order=True)
class PowerPair:
    a: int
    b: int

    @classmethod
    def of(cls, i: int, j: int) -> "PowerPair":
        return cls(min(i, j), max(i, j))

    @property
    def sum(self) -> int:
        return self.a + self.b

    def __str__(self) -> str:
        return f"{self.a}+{self.b}={self.sum}"


@dataclass(frozen=True, order=True)
class PowerTriplet:
    """Three integers with a <= b <= c, built only through PowerTriplet.of()."""
    a: int
    b: int
    c: int

    @classmethod
    def of(cls, i: int, j: int, k: int) -> "PowerTriplet":
        a, b, c = sorted((i, j, k))
        return cls(a, b, c)

    def values(self) -> Tuple[int, int, int]:
        return (self.a, self.b, self.c)

    def overlaps(self, other: "PowerTriplet") -> bool:
        if self == other:
            return False
        return any(x == y for x in self.values() for y in other.values())

    def count_overlaps(self, other: "PowerTriplet") -> int:
        # A triplet fully shared with another counts as no overlap at all.
        count = sum(1 for x in self.values() for y in other.values() if x == y)
        return 0 if count == 3 else count

    def is_valid(self) -> bool:
        return (is_power_of_two(self.a + self.b)
                and is_power_of_two(self.a + self.c)
                and is_power_of_two(self.b + self.c))


def generate_power_triplets(triplet_count: int, powers: PowerSet = POWERS_OF_TWO,
                            logf: Optional[TextIO] = None) -> List[PowerTriplet]:
    """Collect at least triplet_count distinct power triplets by growing radius.

    Returns them sorted, then rotated left by 3/5 of the list length.
    """
    t0 = time.time()
    triplet_set: Set[PowerTriplet] = set()

    delta = 0
    while len(triplet_set) < triplet_count:
        delta += 1
        for p2 in powers:
            for i in (delta, -delta):
                j = p2 - i
                if i == j:
                    continue
                for k in range(-delta, delta + 1):
                    if k == 0 or k == i or k == j:
                        continue
                    if is_power_of_two(i + k) and is_power_of_two(j + k):
                        triplet_set.add(PowerTriplet.of(i, j, k))

    triplets = sorted(triplet_set)
    shift = len(triplets) * 3 // 5
    triplets = triplets[shift:] + triplets[:shift]

    if ASSERTIONS:
        assert all(t.is_valid() for t in triplets)
    if logf is not None:
        logf.write(
            f"{utc_now_iso()} TRIPLETS requested={triplet_count} found={len(triplets)} "
            f"radius={delta} elapsed_sec={time.time() - t0:.3f}\n"
        )
        logf.flush()
    return triplets


# ----------------------------- number sets -----------------------------
class NumberSet:
    """Up to desired_size distinct integers, filled from triplets or one by one.

    Once the set is filled further adds are ignored, so a triplet added to a
    nearly full set is truncated element by element.
    """

    def __init__(self, desired_size: int, numbers: Optional[Set[int]] = None,
                 improvement_count: int = 0) -> None:
        self.desired_size = desired_size
        self.improvement_count = improvement_count
        self.numbers: Set[int] = set(numbers) if numbers else set()

    def __repr__(self) -> str:
        return f"NumberSet({self.desired_size}, {self.sorted_numbers()})"

    def __len__(self) -> int:
        return len(self.numbers)

    def __contains__(self, number: object) -> bool:
        return number in self.numbers

    def reset(self) -> None:
        self.improvement_count = 0
        self.numbers.clear()

    def is_filled(self) -> bool:
        return len(self.numbers) >= self.desired_size

    def copy(self) -> "NumberSet":
        return NumberSet(self.desired_size, self.numbers, self.improvement_count)

    def add(self, number: int) -> None:
        if not self.is_filled():
            self.numbers.add(number)
        if ASSERTIONS:
            assert len(self.numbers) <= self.desired_size

    def add_triplet(self, triplet: PowerTriplet) -> None:
        for number in triplet.values():
            self.add(number)

    def replace(self, old: int, new: int) -> None:
        self.numbers.discard(old)
        self.numbers.add(new)

    def sorted_numbers(self) -> List[int]:
        return sorted(self.numbers)

    def simplify(self) -> None:
        # Halving an all-even set keeps every power-of-two sum a power of two.
        # A set of zeros stays as it is.
        while any(self.numbers) and all(n % 2 == 0 for n in self.numbers):
            self.numbers = {n // 2 for n in self.numbers}

    def count_pairs(self) -> int:
        return sum(1 for x, y in itertools.combinations(self.numbers, 2)
                   if is_power_of_two(x + y))

    def generate_pairs(self) -> List[PowerPair]:
        pairs = [PowerPair.of(x, y) for x, y in itertools.combinations(self.numbers, 2)
                 if is_power_of_two(x + y)]
        pairs.sort()
        return pairs

    def pair_count_per_number(self) -> Dict[int, int]:
        """Number of power pairs each member takes part in (0 for loners)."""
        counts = {n: 0 for n in self.numbers}
        for x, y in itertools.combinations(self.numbers, 2):
            if is_power_of_two(x + y):
                counts[x] += 1
                counts[y] += 1
        return counts


def simple_seed_set(set_size: int) -> NumberSet:
    """Best of ten odd-number seeds: 1, 3, 5, ... mixed with 2 - delta values."""
    best = NumberSet(set_size)
    best_count = 0
    for min_delta_for_negative in range(0, 20, 2):
        number_set = NumberSet(set_size)
        delta = 1
        while not number_set.is_filled():
            number_set.add(delta)
            if delta > min_delta_for_negative:
                number_set.add(-delta + 2)
            delta += 2
        count = number_set.count_pairs()
        if count > best_count or not best.numbers:
            best = number_set
            best_count = count
    return best


# ----------------------------- combinations -----------------------------
class CombinationEnumerator:
    """Lexicographic k-combinations of range(n) whose leading indices are fixed.

    The first len(prefix) positions never move; advance() steps the remaining
    positions through every strictly increasing completion of the prefix.
    """

    def __init__(self, n: int, k: int, prefix: Sequence[int] = ()) -> None:
        self.n = n
        self.k = k
        self.frozen = 0
        self.indices: List[int] = []
        self.reset(prefix)

    def reset(self, prefix: Sequence[int] = ()) -> None:
        if len(prefix) > self.k:
            raise ValueError(f"prefix of length {len(prefix)} exceeds k={self.k}")
        self.frozen = len(prefix)
        self.indices = list(prefix) if prefix else [0]
        while len(self.indices) < self.k:
            self.indices.append(self.indices[-1] + 1)
        del self.indices[self.k:]

    def is_valid(self) -> bool:
        return 0 < self.k <= self.n and self.indices[-1] < self.n

    def advance(self) -> bool:
        for w in range(self.k - 1, self.frozen - 1, -1):
            if self.indices[w] + 1 < self.n - (self.k - w - 1):
                self.indices[w] += 1
                for r in range(w + 1, self.k):
                    self.indices[r] = self.indices[r - 1] + 1
                return True
        return False

    def __iter__(self) -> Iterator[Tuple[int, ...]]:
        """Yield every combination from the current position on."""
        if not self.is_valid():
            return
        yield tuple(self.indices)
        while self.advance():
            yield tuple(self.indices)


def generate_shard_prefixes(triplet_count: int, set_size: int, levels: int) -> List[Tuple[int, ...]]:
    """All L-long index prefixes that still leave room for a full combination.

    Position w of a prefix may go up to n - (k - w) - 1, which is exactly the
    range of L-combinations over n - (k - L) indices.
    """
    if set_size <= 0 or triplet_count < set_size:
        return []
    levels = min(max(0, levels), set_size)
    if levels == 0:
        return [()]
    return list(CombinationEnumerator(triplet_count - (set_size - levels), levels))


# ----------------------------- hill climbing -----------------------------
class HillClimbImprover:
    """Depth-first single-swap local search that remembers the best set seen.

    improve() runs a stack of candidate sets.  Every popped set is compared with
    the best so far and then asked for improving neighbours, which go back on
    the stack.  Neighbours always have strictly more power pairs than their
    parent, so every branch ends.

    Strategies:
      first  queue only the first improving swap found (worst members in
             ascending order, candidates by tally then value)
      batch  queue every best-tally x worst-member swap that improves
    """

    def __init__(self, set_size: int, powers: PowerSet = POWERS_OF_TWO,
                 strategy: str = "first") -> None:
        if strategy not in STRATEGIES:
            raise ValueError(f"unknown improvement strategy {strategy!r}")
        self.powers = powers
        self.strategy = strategy
        self.best_number_set = NumberSet(set_size)
        self.best_pair_count = 0
        self.improvement_count = 0
        self._to_improve: List[NumberSet] = []
        self._seen: Set[FrozenSet[int]] = set()

    def improve(self, number_set: NumberSet) -> None:
        self._to_improve.append(number_set.copy())
        self._seen.clear()
        step = self._improve_first if self.strategy == "first" else self._improve_batch
        while self._to_improve:
            candidate = self._to_improve.pop()
            pair_count = candidate.count_pairs()
            self._update_best(candidate, pair_count)
            step(candidate, pair_count)
        self._seen.clear()

    def _update_best(self, number_set: NumberSet, pair_count: int) -> None:
        if pair_count > self.best_pair_count or not self.best_number_set.numbers:
            if ASSERTIONS:
                assert pair_count >= self.best_pair_count
            self.best_number_set = number_set.copy()
            self.best_pair_count = pair_count

    def _push(self, improved: NumberSet) -> None:
        improved.improvement_count += 1
        self.improvement_count += 1
        self._to_improve.append(improved)

    def _candidate_tally(self, number_set: NumberSet) -> Counter:
        """How often each non-member y shows up as p - x for a power p and member x."""
        tally: Counter = Counter()
        for power in self.powers:
            for number in number_set.numbers:
                maybe_number = power - number
                if maybe_number not in number_set.numbers:
                    tally[maybe_number] += 1
        return tally

    @staticmethod
    def _worst_numbers(number_set: NumberSet) -> Tuple[List[int], int]:
        counts = number_set.pair_count_per_number()
        if not counts:
            return [], 0
        worst_pair_count = min(counts.values())
        return sorted(n for n, c in counts.items() if c == worst_pair_count), worst_pair_count

    def _improve_first(self, number_set: NumberSet, pair_count: int) -> None:
        worst_numbers, worst_pair_count = self._worst_numbers(number_set)
        if not worst_numbers:
            return
        tally = self._candidate_tally(number_set)
        ranked = sorted(tally, key=lambda y: (-tally[y], y))
        for maybe_number in ranked:
            gain = sum(1 for n in number_set.numbers if is_power_of_two(n + maybe_number))
            for worst_number in worst_numbers:
                maybe_pair_count = gain - int(is_power_of_two(worst_number + maybe_number))
                if maybe_pair_count > worst_pair_count:
                    improved = number_set.copy()
                    improved.replace(worst_number, maybe_number)
                    if ASSERTIONS:
                        assert improved.count_pairs() > pair_count
                    self._push(improved)
                    return

    def _improve_batch(self, number_set: NumberSet, pair_count: int) -> None:
        tally = self._candidate_tally(number_set)
        if not tally:
            return
        better_pair_count = max(tally.values())
        better_numbers = sorted(y for y, c in tally.items() if c == better_pair_count)
        worst_numbers, worst_pair_count = self._worst_numbers(number_set)
        if better_pair_count <= worst_pair_count:
            return
        for better_number in better_numbers:
            for worst_number in worst_numbers:
                improved = number_set.copy()
                improved.replace(worst_number, better_number)
                key = frozenset(improved.numbers)
                if key in self._seen:
                    continue
                if improved.count_pairs() > pair_count:
                    self._seen.add(key)
                    self._push(improved)


# ----------------------------- shards -----------------------------
@dataclass(frozen=True)
class SearchParams:
    triplets: Tuple[PowerTriplet, ...]
    set_size: int
    strategy: str = "first"


@dataclass(frozen=True)
class ShardTask:
    index: int
    prefix: Tuple[int, ...] = ()


@dataclass
class ShardResult:
    index: int
    prefix: Tuple[int, ...]
    best_numbers: Tuple[int, ...]
    best_pair_count: int
    best_improvement_count: int
    combination_count: int
    improvement_count: int
    elapsed_sec: float


def run_shard(task: ShardTask, params: SearchParams) -> ShardResult:
    """Enumerate every combination that starts with task.prefix and hill-climb each."""
    t0 = time.time()
    triplets = params.triplets
    improver = HillClimbImprover(params.set_size, POWERS_OF_TWO, params.strategy)
    number_set = NumberSet(params.set_size)
    combination_count = 0

    if params.set_size > 0:
        for indices in CombinationEnumerator(len(triplets), params.set_size, task.prefix):
            combination_count += 1
            number_set.reset()
            for i in indices:
                number_set.add_triplet(triplets[i])
            improver.improve(number_set)

    best = improver.best_number_set
    return ShardResult(
        index=task.index,
        prefix=task.prefix,
        best_numbers=tuple(best.sorted_numbers()),
        best_pair_count=improver.best_pair_count,
        best_improvement_count=best.improvement_count,
        combination_count=combination_count,
        improvement_count=improver.improvement_count,
        elapsed_sec=time.time() - t0,
    )


_PARAMS: Optional[SearchParams] = None


def _init_worker(params: SearchParams, debug: bool, assertions: bool) -> None:
    global _PARAMS, DEBUG, ASSERTIONS
    _PARAMS = params
    DEBUG = debug
    ASSERTIONS = assertions


def worker_shard(task: ShardTask) -> ShardResult:
    assert _PARAMS is not None, "worker used without _init_worker"
    return run_shard(task, _PARAMS)


def _mp_context():
    return get_context("fork") if sys.platform == "darwin" else get_context()


# ----------------------------- progress reporting -----------------------------
class SearchProgress:
    """Counters shared between the result loop and the reporter thread."""

    def __init__(self, shards_total: int) -> None:
        self._lock = threading.Lock()
        self.t0 = time.time()
        self.shards_total = shards_total
        self.shards_done = 0
        self.best_pair_count = 0
        self.improvement_count = 0
        self.combination_count = 0

    def record(self, res: ShardResult) -> None:
        with self._lock:
            self.shards_done += 1
            self.best_pair_count = max(self.best_pair_count, res.best_pair_count)
            self.improvement_count += res.improvement_count
            self.combination_count += res.combination_count

    def snapshot(self) -> Tuple[int, int, int, float]:
        with self._lock:
            percent = 100 * self.shards_done // self.shards_total if self.shards_total else 100
            return percent, self.best_pair_count, self.improvement_count, time.time() - self.t0


class ProgressReporter(threading.Thread):
    """Polls a SearchProgress and rewrites one console line.

    An unchanged percentage is re-printed only every `heartbeat` polls.
    """

    def __init__(self, progress: SearchProgress, stream: TextIO,
                 interval: float = 0.1, heartbeat: int = 20) -> None:
        super().__init__(name="progress-reporter", daemon=True)
        self.progress = progress
        self.stream = stream
        self.interval = interval
        self.heartbeat = heartbeat
        self.stop_event = threading.Event()
        self.lines_written = 0

    def _print(self) -> None:
        percent, best, improvements, elapsed = self.progress.snapshot()
        self.stream.write(f"\r{percent:3d}% {elapsed:5.0f}s {best} pairs {improvements} improvements")
        self.stream.flush()
        self.lines_written += 1

    def run(self) -> None:
        current_percent = -1
        skip_count = 0
        while not self.stop_event.wait(self.interval):
            percent = self.progress.snapshot()[0]
            if percent == current_percent:
                skip_count += 1
                if skip_count < self.heartbeat:
                    continue
            skip_count = 0
            current_percent = percent
            self._print()

    def stop(self) -> None:
        self.stop_event.set()
        self.join()
        self._print()
        self.stream.write("\n")
        self.stream.flush()


# ----------------------------- parallel search -----------------------------
@dataclass
class SearchOutcome:
    best: NumberSet
    best_pair_count: int
    shards: int
    combination_count: int = 0
    improvement_count: int = 0
    elapsed_sec: float = 0.0
    shard_results: List[ShardResult] = field(default_factory=list)


def reduce_shard_results(results: Sequence[ShardResult], set_size: int) -> Tuple[NumberSet, int]:
    """Keep the shard with the most pairs; on ties the lowest shard index wins."""
    best = NumberSet(set_size)
    best_pair_count = 0
    for res in sorted(results, key=lambda r: r.index):
        if res.best_pair_count > best_pair_count or (not best.numbers and res.best_numbers):
            best = NumberSet(set_size, set(res.best_numbers), res.best_improvement_count)
            best_pair_count = res.best_pair_count
    best.simplify()
    return best, best_pair_count


def search_parallel(
    triplets: Sequence[PowerTriplet],
    set_size: int,
    levels: int,
    workers: int,
    strategy: str = "first",
    logf: Optional[TextIO] = None,
    progress_stream: Optional[TextIO] = None,
    report_interval: float = 0.1,
) -> SearchOutcome:
    """Run every shard of the (len(triplets) choose set_size) space and reduce.

    With workers <= 1 the shards run in this process; otherwise a process pool
    pulls them one at a time.  progress_stream=None disables the reporter.
    """
    t0 = time.time()
    prefixes = generate_shard_prefixes(len(triplets), set_size, levels)
    tasks = [ShardTask(index=i, prefix=p) for i, p in enumerate(prefixes)]
    params = SearchParams(triplets=tuple(triplets), set_size=set_size, strategy=strategy)

    if logf is not None:
        logf.write(
            f"{utc_now_iso()} SHARDS set_size={set_size} triplets={len(triplets)} "
            f"levels={levels} shards={len(tasks)} workers={workers} strategy={strategy}\n"
        )
        logf.flush()

    if not tasks:
        return SearchOutcome(best=NumberSet(set_size), best_pair_count=0, shards=0,
                             elapsed_sec=time.time() - t0)

    progress = SearchProgress(len(tasks))
    results: List[ShardResult] = []
    reporter: Optional[ProgressReporter] = None

    def collect(res: ShardResult) -> None:
        results.append(res)
        progress.record(res)
        done = len(results)
        if logf is None:
            return
        if DEBUG:
            logf.write(
                f"{utc_now_iso()} shard index={res.index} prefix={list(res.prefix)} "
                f"pairs={res.best_pair_count} combinations={res.combination_count} "
                f"improvements={res.improvement_count} elapsed_sec={res.elapsed_sec:.3f}\n"
            )
        if done % 25 == 0 or done == len(tasks):
            logf.write(
                f"{utc_now_iso()} progress shards_done={done}/{len(tasks)} "
                f"best_pairs={progress.best_pair_count} "
                f"cum_combinations={progress.combination_count} "
                f"cum_improvements={progress.improvement_count}\n"
            )
            logf.flush()

    if workers <= 1:
        if progress_stream is not None:
            reporter = ProgressReporter(progress, progress_stream, report_interval)
            reporter.start()
        try:
            for task in tasks:
                collect(run_shard(task, params))
        finally:
            if reporter is not None:
                reporter.stop()
    else:
        ctx = _mp_context()
        with ctx.Pool(
            processes=workers,
            initializer=_init_worker,
            initargs=(params, DEBUG, ASSERTIONS),
        ) as pool:
            # Workers are already started here; no thread may exist before that.
            if progress_stream is not None:
                reporter = ProgressReporter(progress, progress_stream, report_interval)
                reporter.start()
            try:
                for res in pool.imap_unordered(worker_shard, tasks, chunksize=1):
                    collect(res)
            finally:
                if reporter is not None:
                    reporter.stop()

    best, best_pair_count = reduce_shard_results(results, set_size)
    if ASSERTIONS:
        assert best.count_pairs() == best_pair_count
    return SearchOutcome(
        best=best,
        best_pair_count=best_pair_count,
        shards=len(tasks),
        combination_count=sum(r.combination_count for r in results),
        improvement_count=sum(r.improvement_count for r in results),
        elapsed_sec=time.time() - t0,
        shard_results=sorted(results, key=lambda r: r.index),
    )


def search_simplified(set_size: int, strategy: str = "first") -> Tuple[NumberSet, HillClimbImprover]:
    improver = HillClimbImprover(set_size, SIMPLE_POWERS_OF_TWO, strategy)
    improver.improve(simple_seed_set(set_size))
    return improver.best_number_set, improver


# ----------------------------- reporting -----------------------------
def format_result(number_set: NumberSet, elapsed_sec: float) -> List[str]:
    numbers = " ".join(str(n) for n in number_set.sorted_numbers())
    pairs = number_set.generate_pairs()
    return [
        f"{number_set.desired_size} numbers in {elapsed_sec:.0f}s: {numbers}",
        f"{len(pairs)} powers pairs: " + " ".join(str(p) for p in pairs),
    ]


def _run_one_size(set_size: int, args, triplets: Optional[List[PowerTriplet]],
                  logf: TextIO, out: TextIO) -> Dict[str, object]:
    """Search one set size.  Returns a result dict (with "error" on failure)."""
    mode = "simplified" if triplets is None else "advanced"
    result: Dict[str, object] = {
        "set_size": set_size, "mode": mode, "pair_count": 0, "numbers": [],
        "combinations": 0, "improvements": 0, "runtime_sec": 0.0,
    }
    t0 = time.time()
    logf.write(
        f"{utc_now_iso()} START set_size={set_size} mode={mode} strategy={args.strategy} "
        f"debug={DEBUG} assertions={ASSERTIONS}\n"
    )
    logf.flush()

    try:
        if triplets is None:
            best, improver = search_simplified(set_size, args.strategy)
            pair_count = improver.best_pair_count
            result["improvements"] = improver.improvement_count
        else:
            outcome = search_parallel(
                triplets,
                set_size=set_size,
                levels=args.level,
                workers=args.workers,
                strategy=args.strategy,
                logf=logf,
                progress_stream=None if args.quiet else out,
                report_interval=args.report_interval,
            )
            best = outcome.best
            pair_count = outcome.best_pair_count
            result["combinations"] = outcome.combination_count
            result["improvements"] = outcome.improvement_count
            out.write(f"Using {outcome.shards} combiners.\n")
            out.write(
                f"Tried {outcome.combination_count} combinations with "
                f"{best.improvement_count} improvements.\n"
            )

        runtime = time.time() - t0
        for line in format_result(best, runtime):
            out.write(line + "\n")
        out.flush()

        result.update({
            "pair_count": pair_count,
            "numbers": best.sorted_numbers(),
            "runtime_sec": runtime,
        })
        logf.write(
            f"{utc_now_iso()} DONE set_size={set_size} pairs={pair_count} "
            f"numbers={best.sorted_numbers()} combinations={result['combinations']} "
            f"improvements={result['improvements']} runtime_sec={runtime:.3f}\n"
        )
        logf.flush()

    except Exception as e:
        logf.write(f"{utc_now_iso()} ERROR set_size={set_size} error={e!r}\n")
        logf.flush()
        print(f"[!] ERROR set_size={set_size}: {e!r} (see {args.log_file})")
        result["error"] = repr(e)

    return result


# ----------------------------- CLI -----------------------------
class _ArgumentParser(argparse.ArgumentParser):
    """Help and argument errors both end the run with status 1."""

    def exit(self, status: int = 0, message: Optional[str] = None) -> None:
        super().exit(status or 1, message)

    def error(self, message: str) -> None:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_arg_parser() -> argparse.ArgumentParser:
    ap = _ArgumentParser(
        prog=program_name,
        description="PowerPairs_Solver: sets of N integers with many power-of-two pairwise sums.",
        epilog="Simplified: SET_SIZE [MAX_SET_SIZE].  "
               "Advanced: TRIPLETS LEVEL MIN_SET_SIZE [MAX_SET_SIZE].",
    )
    ap.add_argument("values", nargs="*", type=int, metavar="N",
                    help="1-2 values run the simplified algorithm, 3-4 values the full search.")
    ap.add_argument("--version", action="store_true",
                    help="Print version/environment info and exit")
    ap.add_argument("--workers", type=int, default=0,
                    help="Worker processes for the full search (default: CPUs minus one).")
    ap.add_argument("--strategy", default="first", choices=list(STRATEGIES),
                    help="first: queue the first improving swap. "
                         "batch: queue every improving best x worst swap.")
    ap.add_argument("--log_file", default=f"{program_name}_v{program_version}.log")
    ap.add_argument("--report_interval", type=float, default=0.1,
                    help="Seconds between progress line refreshes.")
    ap.add_argument("--quiet", action="store_true", help="No progress line.")
    ap.add_argument("--debug", action="store_true")
    ap.add_argument("--assertions", action="store_true")
    return ap


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = build_arg_parser()
    args = ap.parse_args(argv)
    if args.version:
        return args

    vals = args.values
    if not 1 <= len(vals) <= 4:
        ap.error("expected SET_SIZE [MAX_SET_SIZE] or TRIPLETS LEVEL MIN_SET_SIZE [MAX_SET_SIZE]")
    if any(v < 0 for v in vals):
        ap.error("all numeric arguments must be non-negative")
    if args.report_interval <= 0:
        ap.error("--report_interval must be positive")

    args.simplified = len(vals) <= 2
    if args.simplified:
        args.triplets, args.level = 0, 0
        args.min_size = vals[0]
        args.max_size = vals[1] if len(vals) == 2 else vals[0]
    else:
        args.triplets, args.level, args.min_size = vals[0], vals[1], vals[2]
        args.max_size = vals[3] if len(vals) == 4 else vals[2]
    if args.max_size < args.min_size:
        ap.error(f"max set size {args.max_size} is below min set size {args.min_size}")

    args.workers = args.workers if args.workers and args.workers > 0 else default_workers()
    return args


def main(argv: Optional[List[str]] = None) -> int:
    global DEBUG, ASSERTIONS, ENV

    args = parse_args(argv)
    cmd = [sys.argv[0]] + (list(argv) if argv is not None else sys.argv[1:])

    if args.version:
        print(json.dumps(env_block(__file__, cmd), indent=2, sort_keys=True))
        return 0

    DEBUG = bool(args.debug)
    ASSERTIONS = bool(args.assertions)
    ENV = env_block(__file__, cmd)

    out = sys.stdout
    print(f"[+] {program_name} v{program_version}")
    print(f"[+] mode={'simplified' if args.simplified else 'advanced'} "
          f"set sizes: {args.min_size}..{args.max_size}")
    if not args.simplified:
        print(f"[+] triplets={args.triplets} level={args.level} workers={args.workers}")
    print(f"[+] strategy={args.strategy} log_file={args.log_file}")
    print(f"[+] debug={DEBUG} assertions={ASSERTIONS}")
    print(f"[+] start time (UTC): {utc_now_iso()}\n")

    failures = 0
    with open(args.log_file, "a", encoding="utf-8") as logf:
        logf.write(f"{utc_now_iso()} ENV {json.dumps(ENV, sort_keys=True)}\n")
        try:
            triplets: Optional[List[PowerTriplet]] = None
            if not args.simplified:
                t0 = time.time()
                triplets = generate_power_triplets(args.triplets, POWERS_OF_TWO, logf)
                print(f"{len(triplets)} triplets in {time.time() - t0:.0f}s.")

            for set_size in range(args.min_size, args.max_size + 1):
                res = _run_one_size(set_size, args, triplets, logf, out)
                if "error" in res:
                    failures += 1
                    continue
                print(
                    f"[>] set_size={set_size} pairs={res['pair_count']} "
                    f"runtime={float(res['runtime_sec']):.2f} s\n"
                )
        except KeyboardInterrupt:
            logf.write(f"{utc_now_iso()} ERROR interrupted\n")
            print("\n[!] Interrupted.", file=sys.stderr)
            return 130

    print(f"[+] Finished. End time (UTC): {utc_now_iso()}")
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
