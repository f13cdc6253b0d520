import logging
import warnings

from typing import Union, Optional
from dataclasses import dataclass, field

import numpy as np
import pandas as pd
import scipy.sparse
from tqdm import tqdm

from sklearn.base import BaseEstimator
from sklearn.utils.validation import check_is_fitted

from statsmodels.genmod.families import family as sm_family

from .standardize import StandardizationTransform
from .solver import (OEMControl,
                     UnsupportedConfiguration,
                     default_solver_factory)
from .errors import (ConfigurationError,
                     LambdaOrderWarning)
from ._utils import (_get_data,
                     _family_name,
                     _check_penalty_factor,
                     _maxit_message)
from .docstrings import add_dataclass_docstring


@dataclass
class PathResult(object):
    """
    Fitted coefficient path.

    Parameters
    ----------
    lambda_values: np.ndarray
        Values of `lambda` used, in fitting order.
    beta: scipy.sparse.csc_array
        Coefficients of shape `(nvars+1, nlambda)`; row 0 is the intercept.
    niter: np.ndarray
        Solver iterations used for each value of `lambda`.
    lambda_max: float
        `max |X'y_j| / penalty_factor_j` over penalized columns, on the scale
        of `lambda_values`. Unpenalized columns are not fit first, so with
        zero penalty factors this is only approximately the smallest `lambda`
        with all penalized coefficients zero.
    maxit: int
        Iteration cap used in the fit.
    augmented: bool
        Was the intercept fit as an unpenalized column of ones?
    """

    lambda_values: np.ndarray
    beta: scipy.sparse.csc_array
    niter: np.ndarray
    lambda_max: float
    maxit: int
    augmented: bool = False

    @property
    def converged(self):
        return self.niter < self.maxit

    @property
    def intercepts(self):
        return self.beta.toarray()[0]

    @property
    def coefs(self):
        return self.beta.toarray()[1:].T


class _PathBuilder(object):
    """
    Column by column assembly of a sparse `(nrow, ncol)` path, with
    room reserved for `nnz_per_col` entries in each column. Columns
    holding more entries are accepted after growing the storage.
    """

    def __init__(self,
                 nrow,
                 ncol,
                 nnz_per_col):
        self.shape = (nrow, ncol)
        capacity = max(ncol * (nnz_per_col + 1), 1)  # +1 for the intercept
        self._indices = np.empty(capacity, np.int64)
        self._data = np.empty(capacity, float)
        self._indptr = np.zeros(ncol + 1, np.int64)
        self._nnz = 0
        self._col = 0

    def write(self,
              col,
              beta0,
              coef,
              start_at_zero=False):
        """
        Write a sparse column `coef` to column `col`. Unless `start_at_zero`,
        `beta0` goes to row 0 and `coef` is shifted down one row.
        """
        if col != self._col:
            raise ValueError(f'columns must be written in order: expecting {self._col}, got {col}')

        coef = scipy.sparse.csc_array(coef.reshape((-1, 1)))
        coef.sum_duplicates()
        coef.sort_indices()
        indices, data = coef.indices, coef.data
        if not start_at_zero:
            indices = np.hstack([0, indices + 1])
            data = np.hstack([beta0, data])

        if indices.shape[0] > 0 and indices[-1] >= self.shape[0]:
            raise ValueError(f'coefficient of length {coef.shape[0]} does not fit in {self.shape[0]} rows')

        end = self._nnz + indices.shape[0]
        if end > self._data.shape[0]:
            capacity = max(end, 2 * self._data.shape[0])
            self._indices = np.resize(self._indices, capacity)
            self._data = np.resize(self._data, capacity)
        self._indices[self._nnz:end] = indices
        self._data[self._nnz:end] = data
        self._nnz = end
        self._col += 1
        self._indptr[self._col] = end

    def tocsc(self):
        # unwritten columns are empty
        self._indptr[self._col:] = self._nnz
        return scipy.sparse.csc_array((self._data[:self._nnz].copy(),
                                       self._indices[:self._nnz].copy(),
                                       self._indptr.copy()),
                                      shape=self.shape)


def _check_lambda_values(lambda_values):

    if lambda_values is None:
        return None
    lambda_values = np.asarray(lambda_values, float).reshape(-1)
    if lambda_values.shape[0] == 0:
        return None
    if np.any(lambda_values < 0):
        raise ValueError('lambdas should be non-negative')
    if np.any(np.diff(lambda_values) > 0):
        warnings.warn('lambda_values are not non-increasing; warm starts will be seeded '
                      'from solutions at smaller values of lambda',
                      LambdaOrderWarning)
    return lambda_values


def lambda_sequence(lambda_max,
                    lambda_min_ratio,
                    nlambda):
    """
    `nlambda` values equally spaced on a log scale from
    `lambda_max` down to `lambda_min_ratio * lambda_max`.
    """
    if lambda_max <= 0:
        raise ValueError('lambda_max is 0 so a lambda sequence cannot be generated; '
                         'supply lambda_values')
    lambda_min = lambda_min_ratio * lambda_max
    lambda_values = np.exp(np.linspace(np.log(lambda_max),
                                       np.log(lambda_min),
                                       nlambda))
    # pin the endpoints
    lambda_values[0] = lambda_max
    if nlambda > 1:
        lambda_values[-1] = lambda_min
    return lambda_values


def _select_solver(X,
                   Y,
                   penalty_factor,
                   family,
                   control,
                   solver_factory,
                   wide):
    # wide problems (nobs <= 2 * nvars) have no solver for any family
    if wide:
        if family == 'gaussian':
            reason = 'wide designs (nobs <= 2 * nvars) are not supported'
        else:
            reason = f'family "{family}" is not supported for wide designs (nobs <= 2 * nvars)'
        return UnsupportedConfiguration(reason)
    return solver_factory(X,
                          Y,
                          penalty_factor,
                          family,
                          control)


def fit_path(X,
             y,
             family='gaussian',
             lambda_values=None,
             nlambda=100,
             lambda_min_ratio=None,
             penalty_factor=None,
             standardize=True,
             intercept=True,
             control=None,
             sample_weight=None,
             solver_factory=None,
             column_stats='portable'):
    """
    Fit a lasso path minimizing

        1/(2n) ||y - X beta||^2 + lambda * sum(penalty_factor * |beta|)

    for a non-increasing sequence of `lambda` values, warm starting
    each fit from the previous one.

    Parameters
    ----------
    X: np.ndarray
        Design of shape `(nobs, nvars)`. Not modified.
    y: np.ndarray
        Response of shape `(nobs,)`. Not modified.
    family: Union[str, sm_family.Family]
        Only "gaussian" is standardized. For other families the intercept,
        if requested, is an unpenalized column of ones.
    lambda_values: Optional[np.ndarray]
        Values of `lambda`. If None, `nlambda` values are generated.
    nlambda: int
        Number of generated values of `lambda`.
    lambda_min_ratio: Optional[float]
        Ratio of smallest to largest generated `lambda`.
    penalty_factor: Optional[np.ndarray]
        Non-negative penalty factors of length `nvars`.
    standardize: bool
        Scale columns of X by their root-mean-square?
    intercept: bool
        Fit an intercept?
    control: Optional[OEMControl]
        Parameters to control the solver.
    sample_weight: Optional[np.ndarray]
        Observation weights used in the standardization statistics.
    solver_factory: Optional[Callable]
        Called as `solver_factory(X, Y, penalty_factor, family, control)`
        for tall designs, returning a `SolverHandle` or an
        `UnsupportedConfiguration`.
    column_stats: str
        Column statistics backend of the standardization.

    Returns
    -------
    PathResult

    Raises
    ------
    ConfigurationError
        If there is no solver for the family and shape of `X`. No solver
        method is called in this case.
    """
    if control is None:
        control = OEMControl()
    if solver_factory is None:
        solver_factory = default_solver_factory
    family = _family_name(family)

    # copies: the transform works in place
    X = np.array(X, dtype=float, order='F')
    Y = np.array(y, dtype=float).reshape(-1)
    if X.ndim != 2:
        raise ValueError(f'X should be 2-dimensional, got shape {X.shape}')
    nobs, nvars = X.shape
    if Y.shape[0] != nobs:
        raise ValueError(f'y should have length {nobs}, got {Y.shape[0]}')
    if sample_weight is not None:
        sample_weight = np.asarray(sample_weight, float).reshape(-1)

    penalty_factor = _check_penalty_factor(penalty_factor, nvars)
    lambda_values = _check_lambda_values(lambda_values)

    if lambda_values is None:
        if nlambda < 1:
            raise ValueError('nlambda should be at least 1')
        if lambda_min_ratio is None:
            lambda_min_ratio = 1e-4
        if not 0 < lambda_min_ratio <= 1:
            raise ValueError('lambda_min_ratio should be in (0, 1]')

    # non-linear families are fit on the raw design: the
    # intercept, if any, is an unpenalized column of ones

    augmented = False
    if family != 'gaussian':
        if intercept:
            augmented = True
            X = np.asfortranarray(np.column_stack([np.ones(nobs), X]))
            penalty_factor = np.hstack([0, penalty_factor])
        standardize = intercept = False

    transform = StandardizationTransform(nobs,
                                         X.shape[1],
                                         standardize,
                                         intercept,
                                         column_stats=column_stats)
    transform.forward(X, Y, sample_weight)

    handle = _select_solver(X,
                            Y,
                            penalty_factor,
                            family,
                            control,
                            solver_factory,
                            wide=not nobs > 2 * nvars)
    if not handle.supported:
        raise ConfigurationError(handle.reason)

    with handle as solver:

        scale_y = transform.scale_y
        lambda_max = solver.get_lambda_zero() / nobs * scale_y

        if lambda_values is None:
            lambda_values = lambda_sequence(lambda_max,
                                            lambda_min_ratio,
                                            nlambda)
            if control.logging: logging.debug(f'Generated {nlambda} lambda values from {lambda_max} to {lambda_values[-1]}')

        nlam = lambda_values.shape[0]
        builder = _PathBuilder(nvars + 1,
                               nlam,
                               min(nobs, nvars))
        niter = np.zeros(nlam, int)

        with tqdm(total=nlam, disable=not control.progress) as pb:
            for i, l in enumerate(lambda_values):

                if control.logging: logging.info(f'Fitting parameter {l}')

                # solver objective is 1/2 ||y - X beta||^2 + lambda' ||beta||_1
                solver_lambda = l * nobs / scale_y
                if i == 0:
                    solver.init(solver_lambda)
                else:
                    solver.init_warm(solver_lambda)

                niter[i] = solver.solve(control.maxit)
                if niter[i] >= control.maxit and control.logging:
                    logging.debug(_maxit_message(i + 1, l, control.maxit))

                coef = solver.get_coefficients()
                beta0 = 0.
                if not augmented:
                    beta0, coef = transform.recover_sparse(coef)
                builder.write(i,
                              beta0,
                              coef,
                              start_at_zero=augmented)
                pb.update(1)

    return PathResult(lambda_values=lambda_values,
                      beta=builder.tocsc(),
                      niter=niter,
                      lambda_max=lambda_max,
                      maxit=int(control.maxit),
                      augmented=augmented)


_FAMILIES = {'gaussian':sm_family.Gaussian,
             'binomial':sm_family.Binomial,
             'poisson':sm_family.Poisson,
             'gamma':sm_family.Gamma}

def _get_family(family):
    if isinstance(family, sm_family.Family):
        return family
    name = family.lower()
    if name not in _FAMILIES:
        raise ValueError(f'unknown family "{family}", should be one of {sorted(_FAMILIES)} or a statsmodels family')
    return _FAMILIES[name]()


@dataclass
class OEMPathSpec(object):

    lambda_values: Optional[np.ndarray] = None
    nlambda: int = 100
    lambda_min_ratio: Optional[float] = None
    penalty_factor: Optional[np.ndarray] = None
    fit_intercept: bool = True
    standardize: bool = True
    family: Union[str, sm_family.Family] = 'gaussian'
    control: OEMControl = field(default_factory=OEMControl)
    response_id: Union[str,int] = None
    weight_id: Union[str,int] = None
    column_stats: str = 'portable'

add_dataclass_docstring(OEMPathSpec)


@dataclass
class OEMPath(BaseEstimator,
              OEMPathSpec):
    """
    Lasso path fit by orthogonalizing EM.

    Each value of `lambda` minimizes
    `1/(2n) ||y - X beta||^2 + lambda * sum(penalty_factor * |beta|)`
    warm started from the fit at the previous value.
    """

    def fit(self,
            X,
            y,
            sample_weight=None,
            solver_factory=None):
        """
        Fit the path.

        Parameters
        ----------
        X: np.ndarray
            Input matrix, of shape `(nobs, nvars)`.
        y: Union[np.ndarray, pd.DataFrame]
            Response variable.
        sample_weight: Optional[np.ndarray]
            Observation weights, used in the standardization statistics.
            Overrides `weight_id`.
        solver_factory: Optional[Callable]
            Solver constructor for tall designs, see `fit_path`.

        Returns
        -------
        self
        """
        if isinstance(X, pd.DataFrame):
            self.feature_names_in_ = list(X.columns)
        else:
            self.feature_names_in_ = ['X{}'.format(i) for i in range(np.asarray(X).shape[1])]

        X, response, weight = _get_data(self,
                                        X,
                                        y,
                                        weight_id=self.weight_id,
                                        response_id=self.response_id)
        if sample_weight is not None:
            weight = np.asarray(sample_weight, float)

        if self.control is None:
            self.control = OEMControl()

        self._family = _get_family(self.family)
        result = fit_path(X,
                          response,
                          family=self._family,
                          lambda_values=self.lambda_values,
                          nlambda=self.nlambda,
                          lambda_min_ratio=self.lambda_min_ratio,
                          penalty_factor=self.penalty_factor,
                          standardize=self.standardize,
                          intercept=self.fit_intercept,
                          control=self.control,
                          sample_weight=weight,
                          solver_factory=solver_factory,
                          column_stats=self.column_stats)

        self.path_ = result
        self.lambda_values_ = result.lambda_values
        self.lambda_max_ = result.lambda_max
        self.beta_path_ = result.beta
        self.coefs_ = result.coefs
        self.intercepts_ = result.intercepts
        self.n_iter_ = result.niter

        self.summary_ = pd.DataFrame({'Degrees of Freedom':(self.coefs_ != 0).sum(1),
                                      'Iterations':result.niter,
                                      'Converged':result.converged},
                                     index=pd.Series(self.lambda_values_,
                                                     name='lambda'))
        return self

    def predict(self,
                X,
                prediction_type='link'):
        """
        Predictions along the path, of shape `(nobs, nlambda)`.

        Parameters
        ----------
        X: np.ndarray
            Input matrix, of shape `(nobs, nvars)`.
        prediction_type: str
            One of "response" or "link". If "response" return a prediction on the mean scale,
            "link" on the link scale. Defaults to "link".
        """
        check_is_fitted(self, ['coefs_', 'intercepts_'])

        if prediction_type not in ['response', 'link']:
            raise ValueError("prediction should be one of 'response' or 'link'")

        X = np.asarray(X, float)
        linear_pred_ = X @ self.coefs_.T + self.intercepts_[None,:]
        if prediction_type == 'link':
            return linear_pred_
        return self._family.link.inverse(linear_pred_)

    def coef_path(self):
        """
        Coefficients along the path as a `pd.DataFrame` indexed by `lambda`,
        with the intercept in the first column.
        """
        check_is_fitted(self, ['coefs_', 'intercepts_'])

        df = pd.DataFrame(self.coefs_,
                          columns=self.feature_names_in_,
                          index=pd.Series(self.lambda_values_, name='lambda'))
        df.insert(0, 'intercept', self.intercepts_)
        return df
