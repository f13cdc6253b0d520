from dataclasses import dataclass
from typing import ClassVar

import numpy as np
import scipy.sparse

from .docstrings import add_dataclass_docstring


@dataclass
class OEMControl(object):
    """Control parameters for OEM path fitting."""

    maxit: int = 500
    irls_maxit: int = 100
    irls_tol: float = 1e-3
    tol: float = 1e-7
    logging: bool = False
    progress: bool = False

    def __post_init__(self):
        if int(self.maxit) < 1:
            raise ValueError('maxit should be a positive integer')
        if int(self.irls_maxit) < 1:
            raise ValueError('irls_maxit should be a positive integer')
        if self.tol <= 0 or self.irls_tol <= 0:
            raise ValueError('tolerances should be positive')

add_dataclass_docstring(OEMControl)


class PathSolver(object):
    """
    Solver of `1/2||y-X beta||^2 + lambda * sum(penalty_factor * |beta|)`
    holding its current iterate between calls. One instance is used
    for a single path fit and is not shared.
    """

    def get_lambda_zero(self):
        """Smallest `lambda` (solver scale) at which all coefficients are zero."""
        raise NotImplementedError

    def init(self, lambda_val):
        """Cold start at `lambda_val`."""
        raise NotImplementedError

    def init_warm(self, lambda_val):
        """Move to `lambda_val` keeping the current iterate."""
        raise NotImplementedError

    def solve(self, maxit):
        """Iterate until convergence or `maxit`, returning iterations used."""
        raise NotImplementedError

    def get_coefficients(self):
        """Current iterate as a sparse column of shape `(nvars, 1)`."""
        raise NotImplementedError

    def release(self):
        pass


class OEMSolver(PathSolver):
    """
    Orthogonalizing EM for the lasso on a tall dense design.

    With `A = X'X` and `d` the largest eigenvalue of `A`, each iteration is

        beta <- S(X'y - A beta + d beta, lambda * penalty_factor) / d

    where `S` is soft-thresholding.

    Parameters
    ----------
    X: np.ndarray
        Design of shape `(nobs, nvars)`.
    Y: np.ndarray
        Response of shape `(nobs,)`.
    penalty_factor: np.ndarray
        Non-negative multipliers of `lambda`, one per column.
    tol: float
        Iteration stops when the largest absolute change of a coefficient
        is at most `tol`.
    """

    def __init__(self,
                 X,
                 Y,
                 penalty_factor,
                 tol=1e-7):

        self.XX = X.T @ X
        self.XY = X.T @ Y
        self.penalty_factor = np.asarray(penalty_factor, float)
        self.tol = tol

        d = np.linalg.eigvalsh(self.XX).max() if self.XX.shape[0] > 0 else 0.
        self.d = d if d > 0 else 1.   # X is identically zero
        self.beta = np.zeros(self.XX.shape[0])
        self.lambda_val = None

    def get_lambda_zero(self):
        pf = self.penalty_factor
        penalized = pf > 0
        if not np.any(penalized):
            return 0.
        return np.max(np.fabs(self.XY[penalized]) / pf[penalized])

    def init(self, lambda_val):
        self.lambda_val = lambda_val
        self.beta = np.zeros_like(self.beta)

    def init_warm(self, lambda_val):
        self.lambda_val = lambda_val

    def solve(self, maxit):
        if self.lambda_val is None:
            raise ValueError('solver must be initialized with `init` before `solve`')

        thresh = self.lambda_val * self.penalty_factor
        XX, XY, d = self.XX, self.XY, self.d
        beta = self.beta
        niter = 0
        while niter < maxit:
            u = XY - XX @ beta + d * beta
            new_beta = np.sign(u) * np.maximum(np.fabs(u) - thresh, 0) / d
            delta = np.max(np.fabs(new_beta - beta)) if beta.shape[0] > 0 else 0.
            beta = new_beta
            niter += 1
            if delta <= self.tol:
                break
        self.beta = beta
        return niter

    def get_coefficients(self):
        return scipy.sparse.csc_array(self.beta.reshape((-1, 1)))

    def release(self):
        self.XX = self.XY = None


@dataclass
class SolverHandle(object):
    """
    A constructed solver, owned by one path fit. Used as a context
    manager the solver is released on exit.
    """

    solver: PathSolver
    supported: ClassVar[bool] = True

    def release(self):
        if self.solver is not None:
            self.solver.release()
            self.solver = None

    def __enter__(self):
        return self.solver

    def __exit__(self, *exc_info):
        self.release()
        return False


@dataclass
class UnsupportedConfiguration(object):
    """
    No solver exists for the requested (family, shape).
    """

    reason: str
    supported: ClassVar[bool] = False


def default_solver_factory(X,
                           Y,
                           penalty_factor,
                           family,
                           control):
    """
    Solver for a tall problem. Only the linear ("gaussian") family
    has a solver.

    Parameters
    ----------
    X: np.ndarray
        Standardized design.
    Y: np.ndarray
        Response.
    penalty_factor: np.ndarray
        Penalty factors, one per column of `X`.
    family: str
        Family name.
    control: OEMControl
        Parameters to control the solver.

    Returns
    -------
    Union[SolverHandle, UnsupportedConfiguration]
    """
    if family == 'gaussian':
        return SolverHandle(OEMSolver(X,
                                      Y,
                                      penalty_factor,
                                      tol=control.tol))
    return UnsupportedConfiguration(f'no solver for family "{family}" on a tall design')
