import pytest
import numpy as np
import scipy.sparse
from sklearn.linear_model import Lasso

from oempath import (fit_path,
                     lambda_sequence,
                     OEMControl,
                     PathSolver,
                     SolverHandle,
                     ConfigurationError,
                     LambdaOrderWarning)
from oempath.path import _PathBuilder

rng = np.random.default_rng(0)

class FakeSolver(PathSolver):
    """
    Records calls and returns a fixed coefficient vector.
    """

    def __init__(self,
                 coef,
                 lambda_zero=30.,
                 niter=7,
                 fail_at=None):
        self.coef = np.asarray(coef, float)
        self.lambda_zero = lambda_zero
        self.niter = niter
        self.fail_at = fail_at
        self.calls = []
        self.released = False

    def get_lambda_zero(self):
        self.calls.append(('get_lambda_zero',))
        return self.lambda_zero

    def init(self, lambda_val):
        self.calls.append(('init', lambda_val))

    def init_warm(self, lambda_val):
        self.calls.append(('init_warm', lambda_val))

    def solve(self, maxit):
        self.calls.append(('solve', maxit))
        if self.fail_at is not None and len([c for c in self.calls if c[0] == 'solve']) > self.fail_at:
            raise RuntimeError('solver failed')
        return self.niter

    def get_coefficients(self):
        self.calls.append(('get_coefficients',))
        return scipy.sparse.csc_array(self.coef.reshape((-1, 1)))

    def release(self):
        self.released = True


def _factory(solver, record):
    def factory(X, Y, penalty_factor, family, control):
        record.append({'X':X.copy(),
                       'Y':Y.copy(),
                       'penalty_factor':penalty_factor.copy(),
                       'family':family})
        return SolverHandle(solver)
    return factory

def _problem(n=100, p=5):
    X = rng.standard_normal((n, p)) + 1
    X[:,1] *= 3
    beta = np.zeros(p)
    beta[:2] = [1, -0.5]
    y = X @ beta + rng.standard_normal(n) + 2
    return X, y

def test_warm_start_sequence():

    n, p = 50, 3
    X, y = _problem(n, p)
    solver = FakeSolver(np.zeros(p))
    record = []
    result = fit_path(X,
                      y,
                      lambda_values=[10, 1, 0.1],
                      standardize=False,
                      intercept=False,
                      solver_factory=_factory(solver, record))

    inits = [c for c in solver.calls if c[0] in ['init', 'init_warm']]
    assert inits == [('init', 10 * n / 1.),
                     ('init_warm', 1 * n / 1.),
                     ('init_warm', 0.1 * n / 1.)]
    assert len(record) == 1
    assert solver.released
    assert np.all(result.niter == 7)
    assert np.allclose(result.lambda_values, [10, 1, 0.1])

def test_auto_lambda():

    n, p = 50, 3
    X, y = _problem(n, p)
    solver = FakeSolver(np.zeros(p), lambda_zero=30.)
    result = fit_path(X,
                      y,
                      nlambda=5,
                      lambda_min_ratio=0.01,
                      solver_factory=_factory(solver, []))

    L = result.lambda_values
    lambda_max = 30. / n * 1.
    assert L.shape == (5,)
    assert np.all(np.diff(L) < 0)
    assert L[0] == lambda_max
    assert L[-1] == 0.01 * lambda_max
    assert result.lambda_max == lambda_max
    assert np.allclose(np.diff(np.log(L)), np.log(0.01) / 4)

def test_lambda_sequence():

    L = lambda_sequence(2., 1e-3, 20)
    assert L[0] == 2.
    assert L[-1] == 2e-3
    assert np.all(np.diff(L) < 0)

    assert np.allclose(lambda_sequence(2., 0.5, 1), [2.])

    with pytest.raises(ValueError):
        lambda_sequence(0., 0.5, 10)

@pytest.mark.parametrize('intercept', [True, False])
def test_output_shape(intercept):

    n, p = 40, 3
    X, y = _problem(n, p)
    for coef in [np.zeros(p), np.array([0, 1.5, 0])]:
        solver = FakeSolver(coef)
        result = fit_path(X,
                          y,
                          lambda_values=np.linspace(1, 0.1, 5),
                          intercept=intercept,
                          solver_factory=_factory(solver, []))
        assert result.beta.shape == (4, 5)
        assert scipy.sparse.issparse(result.beta)
        assert result.coefs.shape == (5, 3)
        assert result.intercepts.shape == (5,)

@pytest.mark.parametrize('family', ['binomial', 'gaussian'])
def test_wide_unsupported(family):

    n, p = 10, 10
    X, y = _problem(n, p)
    solver = FakeSolver(np.zeros(p + 1))
    record = []
    with pytest.raises(ConfigurationError) as excinfo:
        fit_path(X,
                 y,
                 family=family,
                 nlambda=5,
                 solver_factory=_factory(solver, record))
    assert 'wide' in str(excinfo.value)
    assert record == []
    assert solver.calls == []

def test_default_factory_unsupported_family():

    X, y = _problem(100, 5)
    with pytest.raises(ConfigurationError):
        fit_path(X, y > 2, family='binomial', nlambda=5)

def test_augmented_intercept():

    n, p = 60, 3
    X, y = _problem(n, p)
    coef = np.array([2., 0, 1.5, 0])
    solver = FakeSolver(coef)
    record = []
    penalty_factor = np.array([1., 2., 0.5])
    result = fit_path(X,
                      y,
                      family='binomial',
                      lambda_values=[0.5, 0.1],
                      penalty_factor=penalty_factor,
                      standardize=True,
                      intercept=True,
                      solver_factory=_factory(solver, record))

    X_aug = record[0]['X']
    assert X_aug.shape == (n, p + 1)
    assert np.all(X_aug[:,0] == 1)
    assert np.array_equal(X_aug[:,1:], X)  # not standardized
    assert np.array_equal(record[0]['penalty_factor'], [0, 1., 2., 0.5])
    assert record[0]['family'] == 'binomial'

    assert result.augmented
    assert result.beta.shape == (p + 1, 2)
    beta = result.beta.toarray()
    assert np.array_equal(beta[:,0], coef)
    assert np.array_equal(beta[:,1], coef)
    assert np.allclose(result.intercepts, 2)

def test_nonlinear_no_intercept():

    n, p = 60, 3
    X, y = _problem(n, p)
    coef = np.array([0, 1.5, 0])
    solver = FakeSolver(coef)
    record = []
    result = fit_path(X,
                      y,
                      family='poisson',
                      lambda_values=[0.5],
                      standardize=True,
                      intercept=False,
                      solver_factory=_factory(solver, record))

    assert np.array_equal(record[0]['X'], X)
    assert not result.augmented
    assert np.array_equal(result.beta.toarray()[:,0], [0, 0, 1.5, 0])

@pytest.mark.parametrize('standardize', [True, False])
def test_vs_sklearn(standardize):

    n, p = 100, 5
    X, y = _problem(n, p)
    lambda_values = np.array([0.5, 0.2, 0.1, 0.05])
    control = OEMControl(tol=1e-12, maxit=100000)
    result = fit_path(X,
                      y,
                      lambda_values=lambda_values,
                      standardize=standardize,
                      intercept=False,
                      control=control)

    if standardize:
        scale = np.linalg.norm(X, axis=0) / np.sqrt(n)
    else:
        scale = np.ones(p)

    assert np.all(result.intercepts == 0)
    for l, coef in zip(lambda_values, result.coefs):
        lasso = Lasso(alpha=l,
                      fit_intercept=False,
                      tol=1e-12,
                      max_iter=100000).fit(X / scale[None,:], y)
        assert np.allclose(coef, lasso.coef_ / scale, atol=1e-5)
    assert np.all(result.converged)

@pytest.mark.parametrize('standardize', [True, False])
def test_intercept_from_means(standardize):

    n, p = 100, 5
    X, y = _problem(n, p)
    W = rng.uniform(0.5, 2, size=(n,))
    result = fit_path(X,
                      y,
                      nlambda=10,
                      standardize=standardize,
                      intercept=True,
                      sample_weight=W)

    # X statistics are unweighted when columns are also scaled
    if standardize:
        xm = X.mean(0)
    else:
        xm = (X * np.sqrt(W)[:,None]).mean(0)
    ym = (y * np.sqrt(W)).mean()
    assert np.allclose(result.intercepts, ym - result.coefs @ xm)
    # first lambda is lambda_max
    assert np.allclose(result.coefs[0], 0)
    assert np.allclose(result.intercepts[0], ym)

def test_inputs_not_modified():

    X, y = _problem(100, 5)
    X0, y0 = X.copy(), y.copy()
    fit_path(X, y, nlambda=5, standardize=True, intercept=True)
    assert np.array_equal(X, X0)
    assert np.array_equal(y, y0)

def test_maxit_recorded():

    X, y = _problem(100, 5)
    result = fit_path(X,
                      y,
                      nlambda=5,
                      control=OEMControl(maxit=1, tol=1e-15, logging=True))
    assert np.all(result.niter == 1)
    assert not np.any(result.converged)

def test_lambda_order_warning():

    n, p = 50, 3
    X, y = _problem(n, p)
    solver = FakeSolver(np.zeros(p))
    with pytest.warns(LambdaOrderWarning):
        result = fit_path(X,
                          y,
                          lambda_values=[0.1, 1],
                          solver_factory=_factory(solver, []))
    # used as given
    assert np.allclose(result.lambda_values, [0.1, 1])

def test_bad_arguments():

    n, p = 50, 3
    X, y = _problem(n, p)
    with pytest.raises(ValueError):
        fit_path(X, y, lambda_values=[1, -1])
    with pytest.raises(ValueError):
        fit_path(X, y, nlambda=0)
    with pytest.raises(ValueError):
        fit_path(X, y, lambda_min_ratio=2)
    with pytest.raises(ValueError):
        fit_path(X, y, penalty_factor=np.ones(p + 1))
    with pytest.raises(ValueError):
        fit_path(X, y, penalty_factor=-np.ones(p))
    with pytest.raises(ValueError):
        fit_path(X, y[:-1])

def test_zero_lambda_max():

    n, p = 50, 3
    X, y = _problem(n, p)
    solver = FakeSolver(np.zeros(p), lambda_zero=0.)
    with pytest.raises(ValueError):
        fit_path(X, y, solver_factory=_factory(solver, []))
    assert solver.released

def test_release_on_failure():

    n, p = 50, 3
    X, y = _problem(n, p)
    solver = FakeSolver(np.zeros(p), fail_at=1)
    with pytest.raises(RuntimeError):
        fit_path(X,
                 y,
                 lambda_values=[1, 0.5, 0.1],
                 solver_factory=_factory(solver, []))
    assert solver.released

def test_builder_grows():

    builder = _PathBuilder(5, 3, 1)
    coefs = [np.array([1., 2, 3, 4]),
             np.array([0, 0, 5., 0]),
             np.array([6., 0, 0, 7])]
    for i, c in enumerate(coefs):
        builder.write(i, float(i), scipy.sparse.csc_array(c.reshape((-1, 1))))
    beta = builder.tocsc().toarray()
    assert beta.shape == (5, 3)
    assert np.array_equal(beta[0], [0, 1, 2])
    for i, c in enumerate(coefs):
        assert np.array_equal(beta[1:,i], c)

    with pytest.raises(ValueError):
        builder.write(0, 0., scipy.sparse.csc_array(coefs[0].reshape((-1, 1))))

def test_default_lambda_min_ratio():

    X, y = _problem(100, 5)
    result = fit_path(X, y, nlambda=10)
    L = result.lambda_values
    assert L[0] == result.lambda_max
    assert np.allclose(L[-1], 1e-4 * L[0])

def test_lambda_max_penalized_columns():

    n, p = 100, 5
    X, y = _problem(n, p)
    pf = np.array([0, 1, 2, 0, 1.])
    result = fit_path(X,
                      y,
                      nlambda=5,
                      penalty_factor=pf,
                      standardize=False,
                      intercept=False)

    score = np.fabs(X.T @ y)
    penalized = pf > 0
    assert np.allclose(result.lambda_max, np.max(score[penalized] / pf[penalized]) / n)
