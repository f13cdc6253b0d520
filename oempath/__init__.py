from .standardize import (StandardizationTransform,
                          COLUMN_STATS)
from .solver import (OEMControl,
                     PathSolver,
                     OEMSolver,
                     SolverHandle,
                     UnsupportedConfiguration,
                     default_solver_factory)
from .path import (fit_path,
                   lambda_sequence,
                   PathResult,
                   OEMPath)
from .errors import (ConfigurationError,
                     LambdaOrderWarning)

from .info import VERSION as __version__
