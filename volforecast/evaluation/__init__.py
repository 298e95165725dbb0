"""
Evaluation metrics and diagnostics for variance models.
"""

from volforecast.evaluation.metrics import (
    calculate_aic,
    calculate_bic,
    profile_student_t_df,
    qlike,
    student_t_log_likelihood,
    student_t_nll,
)
from volforecast.evaluation.diagnostics import (
    LeverageStats,
    LjungBoxResult,
    check_leverage_effect,
    ljung_box,
)

__all__ = [
    'calculate_aic',
    'calculate_bic',
    'profile_student_t_df',
    'qlike',
    'student_t_log_likelihood',
    'student_t_nll',
    'LeverageStats',
    'LjungBoxResult',
    'check_leverage_effect',
    'ljung_box',
]
