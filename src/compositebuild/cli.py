"""Command line entry point for compositebuild."""

import logging
import sys

from compositebuild.args import parse_args
from compositebuild.cli_closure import run_closure
from compositebuild.cli_config import build_settings, check_gradle_version, load_config_file
from compositebuild.cli_resolve import run_resolve
from compositebuild.common.errors import ConfigError, DescriptorParseError
from compositebuild.common.logging_utils import configure_logging, extra_context, is_debug_enabled
from compositebuild.constants import ExitCodes
from compositebuild.versioning.models import ResolutionStatus

logger = logging.getLogger(__name__)


def _setup_logging(args) -> None:
    """Configure logging from ``--loglevel`` and ``--logfile``."""
    configure_logging(getattr(args, "LOG_LEVEL", None))

    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logging.getLogger().addHandler(file_handler)
        logger.info("Logging to file: %s", log_file)


def _exit_code_for(results) -> ExitCodes:
    statuses = {result.status for result in results}
    if ResolutionStatus.REPOSITORY_ERROR in statuses:
        return ExitCodes.CONNECTION_ERROR
    if ResolutionStatus.NOT_FOUND in statuses:
        return ExitCodes.RESOLUTION_ERROR
    return ExitCodes.SUCCESS


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    _setup_logging(args)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action=args.COMMAND),
        )

    try:
        check_gradle_version(args.GRADLE_VERSION)
        config = load_config_file(args.CONFIG)
        if args.COMMAND == "closure":
            run_closure(args)
            sys.exit(ExitCodes.SUCCESS.value)

        settings = build_settings(args, config)
        results = run_resolve(args, settings)
    except ConfigError as e:
        logger.error("%s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)
    except DescriptorParseError as e:
        logger.error("%s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)
    except (OSError, ValueError) as e:
        logger.error("%s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)

    sys.exit(_exit_code_for(results).value)


if __name__ == "__main__":
    main()
