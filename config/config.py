"""
Configuration for the self-tallying election engine.

Dataclass sections with YAML persistence. Group parameters are referenced by
name (see arith.NAMED_GROUPS) or given explicitly; large integers are written
to YAML as decimal strings.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from arith import GroupParameters, get_group

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config.yaml")


@dataclass
class GroupConfig:
    name: str = "modp-1024"
    prime: Optional[int] = None
    generator: Optional[int] = None

    def __post_init__(self):
        if self.prime is not None:
            self.prime = int(self.prime)
        if self.generator is not None:
            self.generator = int(self.generator)

    def resolve(self) -> GroupParameters:
        """Named group, or explicit prime/generator when a prime is given"""
        if self.prime is None:
            group = get_group(self.name)
            if self.generator is None:
                return group
            return GroupParameters(prime=group.prime, generator=self.generator, name=group.name)
        return GroupParameters(
            prime=self.prime,
            generator=self.generator if self.generator is not None else 2,
            name=self.name,
        )


@dataclass
class ElectionConfig:
    candidates: List[str] = field(
        default_factory=lambda: ["Alice", "Bob", "Charlie"])
    voters: List[str] = field(
        default_factory=lambda: [f"voter_{i:04d}" for i in range(3)])
    group: GroupConfig = field(default_factory=GroupConfig)
    slot_width: Optional[int] = None
    require_ballot_proofs: bool = False

    def __post_init__(self):
        self.candidates = list(self.candidates)
        self.voters = list(self.voters)
        if isinstance(self.group, dict):
            self.group = GroupConfig(**self.group)

    @property
    def effective_slot_width(self) -> int:
        """Minimal m with 2^m > candidate count >= 2^(m-1)"""
        if self.slot_width is not None:
            return self.slot_width
        return len(self.candidates).bit_length()


@dataclass
class SystemConfig:
    election: ElectionConfig = field(default_factory=ElectionConfig)

    log_dir: Path = field(default_factory=lambda: Path("logs"))
    results_dir: Path = field(default_factory=lambda: Path("results"))
    log_level: str = "INFO"
    enable_benchmarking: bool = True
    enable_debug_mode: bool = False

    def __post_init__(self):
        self.log_dir = Path(self.log_dir)
        self.results_dir = Path(self.results_dir)

        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.results_dir.mkdir(parents=True, exist_ok=True)

        if self.enable_debug_mode:
            self.log_level = "DEBUG"


def _group_from_dict(data: Dict[str, Any]) -> GroupConfig:
    return GroupConfig(
        name=data.get('name', 'modp-1024'),
        prime=data.get('prime'),
        generator=data.get('generator'),
    )


def load_config(config_path: Optional[Path] = None) -> SystemConfig:
    """Load configuration from a YAML file, or return defaults if it is absent"""
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    config_path = Path(config_path)

    if not config_path.exists():
        logger.info(f"No config file at {config_path}, using defaults")
        return SystemConfig()

    try:
        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Could not parse config file {config_path}: {e}") from e

    if not isinstance(config_data, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")

    election_data = config_data.get('election', {})
    defaults = ElectionConfig()
    election_config = ElectionConfig(
        candidates=election_data.get('candidates', defaults.candidates),
        voters=election_data.get('voters', defaults.voters),
        group=_group_from_dict(election_data.get('group', {})),
        slot_width=election_data.get('slot_width'),
        require_ballot_proofs=election_data.get('require_ballot_proofs', False),
    )

    logger.info(f"Loaded configuration from {config_path}")
    return SystemConfig(
        election=election_config,
        log_dir=Path(config_data.get('log_dir', 'logs')),
        results_dir=Path(config_data.get('results_dir', 'results')),
        log_level=config_data.get('log_level', 'INFO'),
        enable_benchmarking=config_data.get('enable_benchmarking', True),
        enable_debug_mode=config_data.get('enable_debug_mode', False),
    )


def save_config(config: SystemConfig, config_path: Optional[Path] = None):
    """Save configuration to a YAML file"""
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    config_path = Path(config_path)

    group = config.election.group
    group_data: Dict[str, Any] = {'name': group.name}
    if group.prime is not None:
        group_data['prime'] = str(group.prime)
    if group.generator is not None:
        group_data['generator'] = group.generator

    config_data = {
        'election': {
            'candidates': list(config.election.candidates),
            'voters': list(config.election.voters),
            'group': group_data,
            'slot_width': config.election.slot_width,
            'require_ballot_proofs': config.election.require_ballot_proofs,
        },
        'log_dir': str(config.log_dir),
        'results_dir': str(config.results_dir),
        'log_level': config.log_level,
        'enable_benchmarking': config.enable_benchmarking,
        'enable_debug_mode': config.enable_debug_mode,
    }

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, 'w') as f:
        yaml.safe_dump(config_data, f, default_flow_style=False, sort_keys=False)
    logger.info(f"Saved configuration to {config_path}")
