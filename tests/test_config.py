import pytest
import yaml

from arith import MODP_1024, MODP_2048
from config import (
    ElectionConfig,
    GroupConfig,
    SystemConfig,
    load_config,
    save_config,
)
from election import Election, InvalidConfigurationError


@pytest.fixture(autouse=True)
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_missing_file_gives_defaults(workdir):
    config = load_config(workdir / "absent.yaml")
    assert config.election.candidates == ["Alice", "Bob", "Charlie"]
    assert config.election.effective_slot_width == 2
    assert config.election.group.resolve() == MODP_1024
    assert (workdir / "logs").is_dir()
    assert (workdir / "results").is_dir()


def test_roundtrip(workdir):
    config = SystemConfig(
        election=ElectionConfig(
            candidates=["yes", "no"],
            voters=["v1", "v2", "v3"],
            group=GroupConfig(prime=MODP_2048.prime, generator=5, name="custom-2048"),
            require_ballot_proofs=True,
        ),
        log_dir=workdir / "l",
        results_dir=workdir / "r",
        log_level="WARNING",
    )
    path = workdir / "conf" / "election.yaml"
    save_config(config, path)

    raw = yaml.safe_load(path.read_text())
    assert raw['election']['group']['prime'] == str(MODP_2048.prime)

    loaded = load_config(path)
    assert loaded.election.candidates == ["yes", "no"]
    assert loaded.election.voters == ["v1", "v2", "v3"]
    assert loaded.election.require_ballot_proofs is True
    assert loaded.election.effective_slot_width == 2
    params = loaded.election.group.resolve()
    assert (params.prime, params.generator, params.name) == (MODP_2048.prime, 5, "custom-2048")
    assert loaded.log_level == "WARNING"


def test_named_group_with_generator_override():
    params = GroupConfig(name="modp-2048", generator=3).resolve()
    assert params.prime == MODP_2048.prime
    assert params.generator == 3


def test_debug_mode_forces_debug_level():
    assert SystemConfig(enable_debug_mode=True).log_level == "DEBUG"


@pytest.mark.parametrize("content", ["election: [unclosed", "- just\n- a list\n"])
def test_malformed_file(workdir, content):
    path = workdir / "bad.yaml"
    path.write_text(content)
    with pytest.raises(ValueError):
        load_config(path)


def test_election_from_config():
    config = ElectionConfig(candidates=["a", "b", "c", "d"], voters=["x", "y"])
    election = Election.from_config(config)
    assert election.slot_width == 3
    assert election.params == MODP_1024
    assert election.roster == ["x", "y"]


def test_unknown_group_is_a_configuration_error():
    config = ElectionConfig(group=GroupConfig(name="modp-31"))
    with pytest.raises(InvalidConfigurationError):
        Election.from_config(config)
