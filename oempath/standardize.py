"""
Column standardization of a design matrix and the map back to the
scale of the original data.

The mode is `int(standardize) + 2 * int(intercept)`:

- 0: nothing is computed, the data is fit directly.
- 1: columns of X are divided by their root-mean-square.
- 2: means of X and y are computed but not subtracted.
- 3: columns of X are divided by their root-mean-square, means of X
     and y are computed but not subtracted.

In modes 2 and 3 the recorded means are used to form the intercept
after the fit as if the data had been centered. The response is never
scaled, so `scale_y` is always 1.
"""

from typing import Optional

import numpy as np
import scipy.sparse

# column statistics backends
# each takes (X, weights) and returns (mean, scale) arrays of length nvars

def _column_mean_scale(v):
    """
    Mean and uncentered root-mean-square `||v||/sqrt(n)` of a single column.
    """
    return v.mean(), np.linalg.norm(v) / np.sqrt(v.shape[0])

def _portable_stats(X, weights=None):
    nvars = X.shape[1]
    mean = np.zeros(nvars)
    scale = np.zeros(nvars)
    sqrt_w = None if weights is None else np.sqrt(weights)
    for i in range(nvars):
        col = X[:,i] if sqrt_w is None else X[:,i] * sqrt_w
        mean[i], scale[i] = _column_mean_scale(col)
    return mean, scale

def _vectorized_stats(X, weights=None):
    if weights is not None:
        V = X * np.sqrt(weights)[:,None]
    else:
        V = X
    mean = V.mean(0)
    scale = np.sqrt((V * V).sum(0)) / np.sqrt(X.shape[0])
    return mean, scale

COLUMN_STATS = {'portable':_portable_stats,
                'vectorized':_vectorized_stats}

def _sparse_inner_product(indices, values, arr):
    # restricted to nonzero values, in index order, so that
    # dense and sparse coefficients give the same sum
    keep = values != 0
    indices, values = indices[keep], values[keep]
    order = np.argsort(indices, kind='stable')
    return np.sum(values[order] * arr[indices[order]])


class StandardizationTransform(object):
    """
    Standardize a design matrix and response in place and recover
    coefficients on the original scale.

    Parameters
    ----------
    nobs: int
        Number of rows of the design.
    nvars: int
        Number of columns of the design.
    standardize: bool
        Divide columns of X by their root-mean-square?
    intercept: bool
        Record means of X and y to form an intercept?
    column_stats: str
        Name of the column statistics backend, one of "portable" or
        "vectorized".
    """

    def __init__(self,
                 nobs: int,
                 nvars: int,
                 standardize: bool,
                 intercept: bool,
                 column_stats: str = 'portable'):

        if column_stats not in COLUMN_STATS:
            raise ValueError(f'column_stats should be one of {sorted(COLUMN_STATS)}, got {column_stats!r}')

        self.nobs = nobs
        self.nvars = nvars
        self._mode = int(bool(standardize)) + 2 * int(bool(intercept))
        self._column_stats = COLUMN_STATS[column_stats]

        self._mean_y = 0.
        self._scale_y = 1.
        self._mean_x = np.zeros(nvars) if self._mode in [2, 3] else None
        self._scale_x = np.ones(nvars) if self._mode in [1, 3] else None

    @property
    def mode(self):
        return self._mode

    @property
    def scale_y(self):
        return self._scale_y

    def get_scaleY(self):
        return self._scale_y

    @property
    def mean_y(self):
        return self._mean_y

    @property
    def mean_x(self):
        if self._mean_x is None:
            raise AttributeError(f'mean_x is not computed in mode {self._mode}')
        return self._mean_x

    @property
    def scale_x(self):
        if self._scale_x is None:
            raise AttributeError(f'scale_x is not computed in mode {self._mode}')
        return self._scale_x

    def forward(self,
                X: np.ndarray,
                Y: np.ndarray,
                weights: Optional[np.ndarray] = None):
        """
        Compute the statistics of the mode and apply the column scaling to
        `X` in place. `Y` is never modified.

        Parameters
        ----------
        X: np.ndarray
            Float design of shape `(nobs, nvars)`, modified in place.
        Y: np.ndarray
            Float response of shape `(nobs,)`.
        weights: Optional[np.ndarray]
            Non-negative observation weights. If given, columns are
            multiplied by `sqrt(weights)` before their statistics are
            computed in modes 1 and 2; mode 3 only weights the response
            mean.

        Returns
        -------
        (X, Y): tuple
            The (possibly modified) arrays.
        """
        self._check(X, Y, weights)

        if self._mode == 0:
            return X, Y

        # mode 3 takes X statistics unweighted, only the response mean is weighted
        x_weights = None if self._mode == 3 else weights
        mean, scale = self._column_stats(X, x_weights)

        if self._mode in [1, 3]:
            scale = scale.copy()
            scale[scale == 0] = 1.   # constant zero column
            self._scale_x[:] = scale
        if self._mode in [2, 3]:
            self._mean_x[:] = mean
            if weights is not None:
                self._mean_y = (Y * np.sqrt(weights)).mean()
            else:
                self._mean_y = Y.mean()

        if self._mode == 1:
            X *= (1. / self._scale_x)[None,:]
        elif self._mode == 3:
            X /= self._scale_x[None,:]

        return X, Y

    def recover(self, coef):
        """
        Map solver coefficients back to the scale of the original data.

        Parameters
        ----------
        coef: Union[np.ndarray, scipy.sparse.sparray]
            Coefficients on the standardized scale.

        Returns
        -------
        (beta0, coef): tuple
            Intercept and coefficients on the original scale. `coef` is a new
            array of the same kind as the input.
        """
        if scipy.sparse.issparse(coef):
            return self.recover_sparse(coef)
        return self.recover_dense(coef)

    def recover_dense(self, coef):

        coef = np.array(coef, float).reshape(-1)
        beta0 = 0.
        if self._mode in [1, 3]:
            coef /= self._scale_x
        if self._mode != 0:
            coef *= self._scale_y
        if self._mode in [2, 3]:
            idx = np.arange(coef.shape[0])
            beta0 = self._mean_y - _sparse_inner_product(idx, coef, self._mean_x)
        return beta0, coef

    def recover_sparse(self, coef):
        """
        As `recover_dense` but only the stored entries of `coef` are touched,
        so the sparsity pattern is unchanged.
        """
        coef = scipy.sparse.csc_array(coef.reshape((-1, 1)), dtype=float, copy=True)
        coef.sum_duplicates()
        beta0 = 0.
        if self._mode in [1, 3]:
            coef.data /= self._scale_x[coef.indices]
        if self._mode != 0:
            coef.data *= self._scale_y
        if self._mode in [2, 3]:
            beta0 = self._mean_y - _sparse_inner_product(coef.indices,
                                                         coef.data,
                                                         self._mean_x)
        return beta0, coef

    # private methods

    def _check(self, X, Y, weights):
        if X.shape != (self.nobs, self.nvars):
            raise ValueError(f'X should have shape {(self.nobs, self.nvars)}, got {X.shape}')
        if Y.shape != (self.nobs,):
            raise ValueError(f'Y should have shape {(self.nobs,)}, got {Y.shape}')
        if weights is not None:
            if weights.shape != (self.nobs,):
                raise ValueError(f'weights should have shape {(self.nobs,)}, got {weights.shape}')
            if np.any(weights < 0):
                raise ValueError('weights should be non-negative')
