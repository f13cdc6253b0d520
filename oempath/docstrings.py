from dataclasses import fields

_docstrings = {
    'X':'''
X: np.ndarray
    Input matrix, of shape `(nobs, nvars)`; each row is an observation
    vector. A copy is made before any standardization is applied.''',

    'y':'''
y: Union[np.ndarray, pd.DataFrame]
    Response variable. If a `pd.DataFrame`, columns are picked out
    with `response_id` and `weight_id`.''',

    'sample_weight':'''
sample_weight: Optional[np.ndarray]
    Observation weights. These only enter the standardization
    statistics, not the least squares objective.''',

    'family':'''
family: Union[str, sm_family.Family]
    Either a family name such as "gaussian" or "binomial" or a
    `statsmodels` family. Only the Gaussian family with identity link
    is fit with standardization; other families are fit on the raw
    design with the intercept as an unpenalized column.''',

    'lambda_values':'''
lambda_values: Optional[np.ndarray]
    An array of `lambda` hyperparameters. Should be non-increasing
    as each fit is warm started from the previous one.''',

    'nlambda':'''
nlambda: int
    Number of values on data-dependent grid of lambda values.
    Values are equally spaced on a log-scale from lambda_max to
    lambda_max * lambda_min_ratio.''',

    'lambda_min_ratio':'''
lambda_min_ratio: Optional[float]
    Ratio of smallest to largest generated lambda. Defaults to `1e-4`.''',

    'penalty_factor':'''
penalty_factor: Optional[np.ndarray]
    Separate penalty factors can be applied to each
    coefficient. This is a number that multiplies `lambda` to
    allow differential shrinkage. Can be 0 for some variables,
    which implies no shrinkage, and that variable is always
    included in the model. Default is 1 for all variables.''',

    'fit_intercept':'''
fit_intercept: bool
    Should intercept be fitted (default=`True`) or set to zero (`False`)?''',

    'standardize':'''
standardize: bool
    Scale columns of X by their root-mean-square before fitting? Default is True.''',

    'response_id':'''
response_id: Union[str,int]
    Response identifier in `y`. (Optional)''',

    'weight_id':'''
weight_id: Union[str,int]
    Weight identifier in `y`. (Optional)''',

    'maxit':'''
maxit: int
    Maximum number of solver iterations for each value of
    `lambda`. A fit that stops at `maxit` is not an error: the
    iteration count is recorded.''',

    'irls_maxit':'''
irls_maxit: int
    Maximum number of outer reweighting iterations. Reserved for
    non-linear families.''',

    'irls_tol':'''
irls_tol: float
    Convergence tolerance of the outer reweighting loop. Reserved for
    non-linear families.''',

    'tol':'''
tol: float
    Convergence tolerance of the solver: iteration stops when the
    largest absolute change of a coefficient is at most `tol`.''',

    'logging':'''
logging: bool
    Write info and debug messages to log?''',

    'progress':'''
progress: bool
    Show a progress bar over the lambda values?''',

    'control':'''
control: OEMControl
    Parameters to control the solver.''',

    'column_stats':'''
column_stats: str
    Name of the column statistics backend, one of "portable" or
    "vectorized".''',

}


def make_docstring(*fieldnames):

    field_str = '\n\n'.join([_docstrings[f].strip() for f in fieldnames])
    return f'''
Parameters
----------

{field_str}
'''

def add_dataclass_docstring(kls, subs={}):
    """
    Add a docstring to a dataclass using entries in `._docstrings` based on the fields
    of the dataclass.
    """

    fieldnames = [f.name for f in fields(kls)]
    for k in subs:
        fieldnames[fieldnames.index(k)] = subs[k]

    kls.__doc__ = '\n'.join([kls.__doc__ or '', make_docstring(*fieldnames)])
    return kls
