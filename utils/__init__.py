"""
Utils package for the Classroom Recording API
"""

from .logger import logger, Logger, log_info, log_error, log_warning, log_debug, log_exception

__all__ = [
    'logger',
    'Logger',
    'log_info',
    'log_error',
    'log_warning',
    'log_debug',
    'log_exception'
]
