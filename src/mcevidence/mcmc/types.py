"""
MCMC Data Structures and Type Definitions.

This module contains the core data structures used by the samplers:
- LikePrior: Cached log-likelihood / log-prior of one evaluated state
- Sample: Immutable (value, LikePrior) snapshot
- Counters: Chain-local accept/reject tallies
- Chain: Ordered samples of one run plus its counters
- Model / ModelValue: Closed two-model tagged value for RJMCMC chains
- AdmixtureValue: (lam, a, b) point of an admixture chain
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable, Iterator, List, NamedTuple, Sequence


@dataclass(frozen=True)
class LikePrior:
    """Unnormalized posterior components for one state evaluation."""
    log_likelihood: float
    log_prior: float

    @property
    def log_posterior(self) -> float:
        return self.log_likelihood + self.log_prior


@dataclass(frozen=True)
class Sample:
    """
    One state of a chain together with its cached LikePrior.

    A rejected transition returns the very same Sample object, so runs of
    rejections show up as repeated identical entries in a chain.
    """
    value: Any
    like_prior: LikePrior

    @property
    def log_likelihood(self) -> float:
        return self.like_prior.log_likelihood

    @property
    def log_prior(self) -> float:
        return self.like_prior.log_prior

    @property
    def log_posterior(self) -> float:
        return self.like_prior.log_likelihood + self.like_prior.log_prior


@dataclass
class Counters:
    """
    Accept/reject tallies for a single chain.

    Diagnostic only; never shared between chains, so chains running on
    separate threads do not race on them.
    """
    accepted: int = 0
    rejected: int = 0

    def record(self, accepted: bool) -> None:
        if accepted:
            self.accepted += 1
        else:
            self.rejected += 1

    @property
    def total(self) -> int:
        return self.accepted + self.rejected

    @property
    def acceptance_rate(self) -> float:
        """Fraction of accepted proposals (0.0 before any transition)."""
        if self.total == 0:
            return 0.0
        return self.accepted / self.total

    def __add__(self, other: 'Counters') -> 'Counters':
        return Counters(self.accepted + other.accepted, self.rejected + other.rejected)


@dataclass
class Chain:
    """
    Fixed-length run of samples.

    samples[0] is the evaluated start; samples[i] was produced from
    samples[i-1] by exactly one transition.
    """
    samples: List[Sample]
    counters: Counters = field(default_factory=Counters)

    def __len__(self) -> int:
        return len(self.samples)

    def __getitem__(self, i):
        return self.samples[i]

    def __iter__(self) -> Iterator[Sample]:
        return iter(self.samples)

    def values(self) -> List[Any]:
        """The chain's state values in order."""
        return [s.value for s in self.samples]


# ============================================================================
# TRANS-DIMENSIONAL VALUES
# ============================================================================

class Model(IntEnum):
    """Which of the two model subspaces a ModelValue lives in."""
    A = 0
    B = 1

    def __str__(self):
        return self.name


@dataclass(frozen=True)
class ModelValue:
    """
    A point in one of two model subspaces.

    The payload is opaque to the samplers; only the tag is inspected.

    Examples:
        ModelValue.a(0.3)
        ModelValue.b(np.array([1.0, 2.0]))
    """
    model: Model
    value: Any

    @classmethod
    def a(cls, value) -> 'ModelValue':
        return cls(Model.A, value)

    @classmethod
    def b(cls, value) -> 'ModelValue':
        return cls(Model.B, value)

    @property
    def is_a(self) -> bool:
        return self.model == Model.A


class AdmixtureValue(NamedTuple):
    """Admixture state: mixing weight lam in [0, 1] and one point in each model."""
    lam: float
    a: Any
    b: Any


# Signatures of the user-supplied functions, for reference
LogDensityFn = Callable[[Any], float]
ProposalFn = Callable[[Any, Any], Any]          # (value, rng) -> proposed value
LogJumpProbFn = Callable[[Any, Any], float]     # (from, to) -> log q(to | from)
EqualsFn = Callable[[Any, Any], bool]
SampleSeq = Sequence[Sample]
