import asyncio
import logging
import sys
import argparse
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np

from config import SystemConfig, load_config
from election import ElectionError
from self_tallying_system import SelfTallyingVotingSystem, create_random_choices
from utils import (
    PerformanceMonitor,
    setup_logging,
    save_results,
    create_performance_report,
    format_duration,
)

logger = logging.getLogger(__name__)


def build_config(args) -> SystemConfig:
    """Config file values, overridden by command line flags"""
    config = load_config(Path(args.config))
    election = config.election

    if args.candidates is not None:
        election.candidates = [f"Candidate {i}" for i in range(args.candidates)]
        election.slot_width = None
    if args.voters is not None:
        election.voters = [f"voter_{i:04d}" for i in range(args.voters)]
    if args.group is not None:
        election.group.name = args.group
        election.group.prime = None
        election.group.generator = None
    if args.require_ballot_proofs:
        election.require_ballot_proofs = True
    if args.mode == 'benchmark':
        config.enable_benchmarking = True

    return config


def parse_votes(votes: Optional[str], voter_ids: List[str], num_candidates: int,
                seed: int) -> Dict[str, int]:
    """Comma-separated candidate indices, one per voter; random when omitted"""
    if votes is None:
        return create_random_choices(voter_ids, num_candidates, seed=seed)

    indices = [int(v) for v in votes.split(',') if v.strip()]
    if len(indices) != len(voter_ids):
        raise ValueError(f"Expected {len(voter_ids)} votes, got {len(indices)}")
    return dict(zip(voter_ids, indices))


def write_performance_report(monitor: PerformanceMonitor, output: Path) -> Path:
    perf_path = output.parent / f"{output.stem}_performance.txt"
    with open(perf_path, "w") as f:
        f.write(create_performance_report(monitor))
    return perf_path


def print_election_header(election, title: str):
    print("=" * 80)
    print(title)
    print("   Schnorr key proofs + blinded homomorphic ballots + verified tally")
    print("=" * 80)
    print(f"\n   • Candidates: {', '.join(election.get_candidates())}")
    print(f"   • Voters: {election.roster_size}")
    print(f"   • Group: {election.params.name} ({election.params.prime.bit_length()} bits)")
    print(f"   • Slot width: {election.slot_width} bits")
    print(f"   • Ballot proofs: {'required' if election.require_ballot_proofs else 'off'}")


async def run_demo(config: SystemConfig, votes: Optional[str], seed: int,
                   output: Path) -> bool:
    system = SelfTallyingVotingSystem(config, election_id=output.stem)
    election = system.election
    print_election_header(election, "SELF-TALLYING ANONYMOUS ELECTION")

    choices = parse_votes(votes, election.roster, len(election.get_candidates()), seed)

    try:
        report = await system.run_election(choices)
    except ElectionError as e:
        print(f"\n Election failed: {e}")
        logger.error(f"Election failed: {e}")
        return False

    print("\n" + "=" * 40)
    print("ELECTION RESULTS")
    print("=" * 40)
    for name, count in report.counts.items():
        print(f"  {name}: {count} votes")
    print(f"\n  Winner: {report.winner or 'no winner'}")

    if report.failures:
        print("\nRejected operations:")
        for failure in report.failures:
            print(f"  {failure}")

    save_results(report.to_dict(), output)
    print(f"\nFull results saved to: {output}")

    if system.performance_monitor is not None:
        perf_path = write_performance_report(system.performance_monitor, output)
        print(f"Performance report: {perf_path}")

    return True


async def run_benchmark(config: SystemConfig, trials: int, seed: Optional[int],
                        output: Path) -> bool:
    """Run repeated elections with random votes and report timing statistics"""
    if trials < 1:
        raise ValueError(f"Benchmark needs at least one trial, got {trials}")

    monitor = PerformanceMonitor()
    durations = []
    election = None

    for trial in range(trials):
        system = SelfTallyingVotingSystem(
            config, election_id=f"{output.stem}_{trial}", performance_monitor=monitor)
        election = system.election
        if trial == 0:
            print_election_header(election, f"SELF-TALLYING ELECTION BENCHMARK ({trials} trials)")
            print()

        choices = create_random_choices(
            election.roster, len(election.get_candidates()),
            seed=None if seed is None else seed + trial)
        try:
            report = await system.run_election(choices)
        except ElectionError as e:
            print(f"\n Trial {trial + 1} failed: {e}")
            logger.error(f"Benchmark trial {trial + 1} failed: {e}")
            return False

        durations.append(report.duration_seconds)
        print(f"  Trial {trial + 1}/{trials}: {format_duration(report.duration_seconds)}"
              f" (winner: {report.winner or 'no winner'})")

    times = np.array(durations)
    benchmark = {
        'trials': trials,
        'num_voters': election.roster_size,
        'num_candidates': len(election.get_candidates()),
        'group': election.params.name,
        'ballot_proofs': election.require_ballot_proofs,
        'mean_time': float(times.mean()),
        'median_time': float(np.median(times)),
        'std_time': float(times.std()) if trials > 1 else 0.0,
        'min_time': float(times.min()),
        'max_time': float(times.max()),
        'ballots_per_sec': election.roster_size * trials / float(times.sum()) if times.sum() > 0 else 0.0,
    }

    print(f"\n  Mean election time: {format_duration(benchmark['mean_time'])}"
          f" ± {format_duration(benchmark['std_time'])}")
    print(f"  Throughput: {benchmark['ballots_per_sec']:.2f} ballots/sec")

    save_results({'benchmark': benchmark, 'performance': monitor.get_summary()}, output)
    perf_path = write_performance_report(monitor, output)
    print(f"\nBenchmark results saved to: {output}")
    print(f"Performance report: {perf_path}")
    return True


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description='Self-tallying anonymous election (Hao-Ryan-Zielinski)')
    parser.add_argument('--voters', type=int, default=None,
                        help='Number of voters (overrides the config file roster)')
    parser.add_argument('--candidates', type=int, default=None,
                        help='Number of candidates (overrides the config file)')
    parser.add_argument('--votes', type=str, default=None,
                        help='Comma-separated candidate index per voter, e.g. 0,1,1 (demo mode)')
    parser.add_argument('--group', choices=['modp-1024', 'modp-2048'], default=None,
                        help='Named prime group')
    parser.add_argument('--require-ballot-proofs', action='store_true',
                        help='Require a membership proof with every ballot')
    parser.add_argument('--seed', type=int, default=None,
                        help='Seed for random votes')
    parser.add_argument('--trials', type=int, default=3,
                        help='Number of elections to run in benchmark mode')
    parser.add_argument('--config', type=str,
                        default='config.yaml', help='Config file path')
    parser.add_argument('--output', type=str, default=None,
                        help='Results file (defaults to <results_dir>/<mode>_report.json)')
    parser.add_argument(
        '--mode', choices=['demo', 'benchmark'], default='demo')

    args = parser.parse_args(argv)

    try:
        config = build_config(args)
    except (ValueError, ElectionError) as e:
        print(f"Invalid configuration: {e}")
        return 1

    setup_logging(config.log_level, log_dir=config.log_dir)

    if args.output:
        output = Path(args.output)
    else:
        output = config.results_dir / f"{'election' if args.mode == 'demo' else 'benchmark'}_report.json"

    try:
        if args.mode == 'benchmark':
            success = asyncio.run(run_benchmark(config, args.trials, args.seed, output))
        else:
            success = asyncio.run(run_demo(config, args.votes, args.seed, output))
    except (ValueError, ElectionError) as e:
        print(f"\n {args.mode.capitalize()} failed: {e}")
        return 1
    return 0 if success else 1


if __name__ == "__main__":
    sys.exit(main())
