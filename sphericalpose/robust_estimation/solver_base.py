"""Capability interfaces shared by minimal solvers and error metrics.

A robust estimator only needs two things from the geometry it estimates: a
way to fit candidate models to a sample, and a way to score one model
against one correspondence. Solvers and metrics implementing the base
classes below can be combined freely inside a `PointFittingKernel`.

Authors: Auto-generated for spherical SfM
"""

import abc
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import numpy as np


class UnsupportedOperationError(NotImplementedError):
    """Raised when a solver is asked for an operation it does not provide."""


class SolveStatus(Enum):
    SUCCESS = "SUCCESS"
    UNSUPPORTED = "UNSUPPORTED"


@dataclass(frozen=True)
class SolveResult:
    """Outcome of a solve request that a solver may not support.

    Attributes:
        status: Whether the solver handled the request.
        models: Candidate models, empty unless status is SUCCESS.
        message: Human readable reason for an UNSUPPORTED status.
    """

    status: SolveStatus
    models: List[np.ndarray] = field(default_factory=list)
    message: Optional[str] = None

    @classmethod
    def unsupported(cls, message: str) -> "SolveResult":
        return cls(status=SolveStatus.UNSUPPORTED, models=[], message=message)

    @property
    def is_supported(self) -> bool:
        return self.status == SolveStatus.SUCCESS

    def unwrap(self) -> List[np.ndarray]:
        """Return the models, raising UnsupportedOperationError for an unsupported request."""
        if not self.is_supported:
            raise UnsupportedOperationError(self.message or "Operation not supported by solver.")
        return self.models


class SolverBase(metaclass=abc.ABCMeta):
    """Base class for minimal-sample model solvers."""

    @property
    @abc.abstractmethod
    def minimum_num_samples(self) -> int:
        """Minimum number of correspondences needed to produce a model."""

    @property
    @abc.abstractmethod
    def max_num_models(self) -> int:
        """Upper bound on the number of models returned by one call to solve()."""

    @abc.abstractmethod
    def solve(self, x1: np.ndarray, x2: np.ndarray) -> List[np.ndarray]:
        """Fit candidate models to index-aligned correspondences.

        Args:
            x1: (N, D) observations in the first view.
            x2: (N, D) observations in the second view.

        Returns:
            At most `max_num_models` candidate models.
        """

    def solve_weighted(self, x1: np.ndarray, x2: np.ndarray, weights: np.ndarray) -> SolveResult:
        """Fit candidate models with per-correspondence weights.

        Solvers without a weighted formulation keep this default, which reports
        the request as unsupported instead of silently ignoring the weights.
        """
        return SolveResult.unsupported(f"{type(self).__name__} does not support problem solving with weights.")


class ErrorMetricBase(metaclass=abc.ABCMeta):
    """Base class for the residual used to score a model against a correspondence."""

    @abc.abstractmethod
    def error(self, model: np.ndarray, x1: np.ndarray, x2: np.ndarray) -> float:
        """Residual of a single correspondence (x1, x2) under `model`."""

    def errors(self, model: np.ndarray, x1: np.ndarray, x2: np.ndarray) -> np.ndarray:
        """Residuals of all rows of x1 and x2 under `model`."""
        return np.array([self.error(model, a, b) for a, b in zip(x1, x2)], dtype=np.float64)
