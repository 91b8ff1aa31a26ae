# Copyright (c) 2025 Efstratios Goudelis
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.


import logging.config
import logging
import yaml


def read_dict_config(filepath):
    """Read a YAML ``dictConfig`` document, which must be a mapping with a ``version`` key."""
    with open(filepath, "r") as file:
        config = yaml.safe_load(file)
    if not isinstance(config, dict) or "version" not in config:
        raise ValueError(f"{filepath}: not a logging dictConfig mapping")
    return config


def get_logger_config(args):
    """
    Loads the logging configuration named by ``args.log_config``.

    :param args: Parsed arguments containing the file path to the logging configuration.
    :type args: argparse.Namespace
    :return: Mapping ready for ``logging.config.dictConfig``.
    :rtype: dict
    :raises FileNotFoundError: If the specified logging configuration file cannot be found.
    :raises yaml.YAMLError: If the YAML configuration file cannot be parsed due to invalid syntax.
    :raises ValueError: If the document is not a dictConfig mapping.
    """
    return read_dict_config(args.log_config)


def get_logger(args):
    """
    Obtains a logger instance configured according to the given logging configuration.

    Applies the YAML logging configuration named in the arguments and returns
    the "ukhasnet" logger with its level taken from ``args.log_level``. Loggers
    of the parser modules ("ukhasnet.grammar", "ukhasnet.parser", ...) are its
    children and propagate to it.

    :param args: The command-line arguments containing the path to the logging
                 configuration file (YAML format) and the log level.
    :type args: argparse.Namespace
    :return: A logger instance named "ukhasnet".
    :rtype: logging.Logger
    """
    logging_config = get_logger_config(args)

    logging.config.dictConfig(logging_config)

    log = logging.getLogger("ukhasnet")
    log.setLevel(args.log_level)

    return log
