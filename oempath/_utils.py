import numpy as np
import pandas as pd

from sklearn.utils import check_X_y
from statsmodels.genmod.families import family as sm_family
from statsmodels.genmod.families import links as sm_links


def _get_data(estimator,
              X,
              y,
              weight_id=None,
              response_id=None,
              check=True):

    if isinstance(y, pd.DataFrame):
        if response_id is None:
            keep = [c for c in y.columns if c != weight_id]
            response = y.loc[:,keep]
        else:
            response = y.loc[:,response_id]
        if weight_id is not None:
            weight = np.asarray(y.loc[:,weight_id], float)
        else:
            weight = None
    else:
        y = np.asarray(y)
        if y.ndim == 2 and (response_id is not None or weight_id is not None):
            # col could be 0 so check for None
            if response_id is not None:
                response = y[:,response_id]
            else:
                keep = np.ones(y.shape[1], bool)
                keep[weight_id] = 0
                response = y[:,keep]
            weight = y[:,weight_id] if weight_id is not None else None
        else:
            response = y
            weight = None

    response = np.squeeze(np.asarray(response, float))
    if check:
        X, response = check_X_y(X, response,
                                multi_output=False,
                                y_numeric=True,
                                estimator=estimator)
    if weight is not None:
        weight = np.asarray(weight, float)
    return X, response, weight


def _family_name(family):
    """
    Lower case name for a family given as a string or a `statsmodels` family.
    A Gaussian family is "gaussian" only with the identity link.
    """
    if isinstance(family, str):
        return family.lower()
    if isinstance(family, sm_family.Gaussian):
        if isinstance(family.link, sm_links.Identity):
            return 'gaussian'
        return f'gaussian({family.link.__class__.__name__.lower()})'
    if isinstance(family, sm_family.Family):
        return family.__class__.__name__.lower()
    raise ValueError(f'family should be a str or a statsmodels family, got {family!r}')


def _check_penalty_factor(penalty_factor, nvars):

    if penalty_factor is None:
        return np.ones(nvars)
    penalty_factor = np.asarray(penalty_factor, float)
    if penalty_factor.ndim == 0:
        penalty_factor = np.full(nvars, float(penalty_factor))
    penalty_factor = penalty_factor.reshape(-1)
    if penalty_factor.shape[0] != nvars:
        raise ValueError(f'penalty_factor should have length {nvars}, got {penalty_factor.shape[0]}')
    if np.any(penalty_factor < 0):
        raise ValueError('penalty factors should be non-negative')
    return penalty_factor


def _maxit_message(k, lambda_val, maxit):
    return (f"Convergence for {k}-th lambda value ({lambda_val:.4g}) not reached after maxit={maxit}" +
            " iterations; solution at the iteration cap recorded")
