#!/usr/bin/env python3
"""
Self-Tallying Voting System
===========================
Drives a complete election against the protocol engine:

1. Registration: every roster member publishes g^x with a Schnorr proof
2. Voting: every member casts a blinded ballot y^x * g^(2^(j*m))
3. Tally: the counts are recovered from the public aggregate by a bounded
   discrete-log search and submitted for verification

Registrations and ballots are submitted concurrently from worker threads;
the election's lock serializes them and the final tally does not depend on
their arrival order.
"""

import asyncio
import logging
import time
from contextlib import nullcontext
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np

from config import SystemConfig
from election import (
    Election,
    OperationResult,
    TallyMismatchError,
    VoterClient,
    attempt,
)
from tally import TallyResult, TallyVerificationError, recover_counts
from utils import PerformanceMonitor

logger = logging.getLogger(__name__)

Choice = Union[int, str]


@dataclass
class ElectionReport:
    """Outcome of a full election run"""
    election_id: str
    candidates: List[str]
    counts: Dict[str, int]
    winner: Optional[str]
    aggregate: int
    exponent: int
    total_votes: int
    transitions: List[Dict[str, Any]] = field(default_factory=list)
    failures: List[str] = field(default_factory=list)
    performance: Optional[Dict[str, Any]] = None
    duration_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def create_random_choices(voter_ids: Sequence[str], num_candidates: int,
                          seed: Optional[int] = None) -> Dict[str, int]:
    """Uniformly random candidate index per voter"""
    rng = np.random.default_rng(seed)
    picks = rng.integers(0, num_candidates, size=len(voter_ids))
    return {voter_id: int(pick) for voter_id, pick in zip(voter_ids, picks)}


class SelfTallyingVotingSystem:
    """Runs the roster's voter clients against one Election"""

    def __init__(self, config: SystemConfig, election_id: str = "election",
                 performance_monitor: Optional[PerformanceMonitor] = None):
        self.config = config
        self.election_id = election_id
        self.election = Election.from_config(config.election)
        self.voters: Dict[str, VoterClient] = {
            voter_id: VoterClient(voter_id, self.election.params)
            for voter_id in self.election.roster
        }
        if performance_monitor is None and config.enable_benchmarking:
            performance_monitor = PerformanceMonitor()
        self.performance_monitor = performance_monitor
        self.failures: List[OperationResult] = []

        logger.info(
            f"Initialized voting system {election_id} with {len(self.voters)} voter clients")

    def _timed(self, operation: str):
        if self.performance_monitor is None:
            return nullcontext()
        return self.performance_monitor.start_operation(operation)

    def _record(self, voter_id: str, action: str, result: OperationResult) -> OperationResult:
        if result.failed:
            logger.warning(f"{action} failed for {voter_id}: {result.error.value}: {result.reason}")
            self.failures.append(result)
        return result

    def _register_one(self, client: VoterClient) -> OperationResult:
        with self._timed("register_voter"):
            result = attempt(client.register, self.election)
        return self._record(client.voter_id, "Registration", result)

    def _vote_one(self, client: VoterClient, choice: Choice) -> OperationResult:
        with self._timed("cast_ballot"):
            result = attempt(client.vote, self.election, choice)
        return self._record(client.voter_id, "Ballot", result)

    async def register_voters(self) -> List[OperationResult]:
        """Submit every voter's key and proof concurrently"""
        logger.info(f"Registering {len(self.voters)} voters...")
        return list(await asyncio.gather(*(
            asyncio.to_thread(self._register_one, client)
            for client in self.voters.values()
        )))

    async def cast_ballots(self, choices: Dict[str, Choice]) -> List[OperationResult]:
        """Cast one ballot per voter listed in choices"""
        unknown = set(choices) - set(self.voters)
        if unknown:
            raise ValueError(f"Choices given for voters not on the roster: {sorted(unknown)}")

        logger.info(f"Casting {len(choices)} ballots...")
        return list(await asyncio.gather(*(
            asyncio.to_thread(self._vote_one, self.voters[voter_id], choice)
            for voter_id, choice in choices.items()
        )))

    async def compute_tally(self) -> TallyResult:
        """Recover the counts from the aggregate and have the election verify them"""
        with self._timed("compute_tally"):
            aggregate = self.election.get_aggregate()
            try:
                counts = await asyncio.to_thread(
                    recover_counts,
                    aggregate,
                    num_candidates=len(self.election.get_candidates()),
                    slot_width=self.election.slot_width,
                    total_votes=self.election.vote_count,
                    params=self.election.params,
                )
            except TallyVerificationError as e:
                raise TallyMismatchError(str(e)) from e
            return self.election.resolve_tally(counts)

    async def run_election(self, choices: Dict[str, Choice]) -> ElectionReport:
        start = time.time()
        logger.info(f"Starting election {self.election_id}")

        await self.register_voters()
        await self.cast_ballots(choices)
        result = await self.compute_tally()

        report = ElectionReport(
            election_id=self.election_id,
            candidates=self.election.get_candidates(),
            counts=dict(result.counts),
            winner=result.winner,
            aggregate=result.aggregate,
            exponent=result.exponent,
            total_votes=result.total_votes,
            transitions=[
                {'from': t.from_round.value, 'to': t.to_round.value, 'timestamp': t.timestamp}
                for t in self.election.transitions
            ],
            failures=[f"{f.error.value}: {f.reason}" for f in self.failures],
            performance=self.performance_monitor.get_summary() if self.performance_monitor else None,
            duration_seconds=time.time() - start,
        )

        logger.info(f"Election {self.election_id} completed in {report.duration_seconds:.3f}s")
        logger.info(f"Final tally: {report.counts}, winner: {report.winner}")
        return report
