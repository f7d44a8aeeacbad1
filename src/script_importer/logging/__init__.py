"""
Logging module for script_importer.

Import directly from sub-modules:
    from script_importer.logging.setup import get_logger, setup_logging
    from script_importer.logging.utilities import log_with_context
    from script_importer.logging.context import set_log_context
"""
