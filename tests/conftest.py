import logging
from typing import Sequence

import pytest

from arith import MODP_1024
from election import Election, VoterClient, compute_slot_width

PARAMS = MODP_1024
CANDIDATES = ("c0", "c1", "c2")
VOTERS = ("alice", "bob", "carol")


def make_election(candidates: Sequence[str] = CANDIDATES, voters: Sequence[str] = VOTERS,
                  require_ballot_proofs: bool = False) -> Election:
    return Election(
        candidates=candidates,
        voters=voters,
        prime=PARAMS.prime,
        generator=PARAMS.generator,
        slot_width=compute_slot_width(len(candidates)),
        require_ballot_proofs=require_ballot_proofs,
        group_name=PARAMS.name,
    )


@pytest.fixture
def params():
    return PARAMS


@pytest.fixture
def election():
    return make_election()


@pytest.fixture
def clients():
    return {voter_id: VoterClient(voter_id, PARAMS) for voter_id in VOTERS}


@pytest.fixture
def voting_election(election, clients):
    """Election with every voter registered"""
    for client in clients.values():
        client.register(election)
    return election


@pytest.fixture
def restore_logging():
    """setup_logging replaces the root handlers; put them back afterwards"""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        if handler not in handlers:
            handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


@pytest.fixture
def election_factory():
    return make_election
