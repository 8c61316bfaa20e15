#!/usr/bin/env python3

import sys
import argparse
import logging

import logzero
from logzero import logger

from chaoskube.actions.experiment import orchestrate_experiment
from chaoskube.actions.injector import FaultInjector
from chaoskube.common import Sequence, load_kube_client
from chaoskube.exceptions import ChaosError
from chaoskube.experiment import ChaosContext, ExperimentDetails
from chaoskube.faults import FAULTS, get_fault
from chaoskube.probes.probe import targets_are_running


# Command-line Argument Parsing
def str2bool(v):
    if v.lower() in ('yes', 'true', 't', 'y', '1'):
        return True
    elif v.lower() in ('no', 'false', 'f', 'n', '0'):
        return False
    else:
        raise argparse.ArgumentTypeError(
            'Boolean value (yes, no, true, false, y, n, 1, or 0) expected.')


LOG_LEVEL_HELP = """Logging level.
                      [LOG-LEVEL]: notset, debug, info, warning, error, critical
                      Default: info"""
levels = {
    'notset': logging.NOTSET,
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warning': logging.WARNING,
    'error': logging.ERROR,
    'critical': logging.CRITICAL
}


def log_level(v):
    if v.lower() in levels.keys():
        return levels[v.lower()]
    else:
        raise argparse.ArgumentTypeError(
            'Expected one of the following: {}.'.format(
                 ', '.join(levels.keys())))


def program_args():
    parser = argparse.ArgumentParser(
        description='Inject a fault into Kubernetes pods, keep it active for '
                    'the chaos duration and revert it. Settings not given '
                    'on the command line are read from the environment '
                    '(TOTAL_CHAOS_DURATION, APP_NAMESPACE, APP_LABEL, '
                    'TARGET_PODS, SEQUENCE, ...).')

    parser.add_argument('fault', choices=sorted(FAULTS.keys()),
                        help='The fault to inject.')

    parser.add_argument('--sequence', choices=[s.value for s in Sequence],
                        help='Inject into the targets one at a time ' \
                        '(serial) or all at once (parallel). Default: ' \
                        'SEQUENCE environment variable or parallel.',
                        default=None)

    parser.add_argument('--duration', type=int, help='The chaos duration in ' \
                        'seconds. Default: TOTAL_CHAOS_DURATION environment ' \
                        'variable or 30.', default=None)

    parser.add_argument('--check-targets', type=str2bool, help='Check that ' \
                        'the target pods are running before injecting chaos. ' \
                        'Default: Y Options (case insensitive): y, yes, true,' \
                        ' 1, n, no, false, 0', nargs='?', const=True,
                        default=True)

    parser.add_argument('-l', '--log-level', type=log_level, nargs='?',
                        const=logging.INFO, default=logging.INFO,
                        help=LOG_LEVEL_HELP)

    return parser


def parse_args(argv=None, parser=program_args()):
    return parser.parse_args(args=argv)


def init(args):
    logzero.loglevel(args.log_level)
    logger.debug("Initializing...")
    logger.debug("args: %s", args)


def main(args, api=None):
    try:
        init(args)
    except Exception:
        logger.error('Unable to initialize script')
        raise

    try:
        details = ExperimentDetails.from_env(experiment_name=args.fault,
                                             sequence=args.sequence,
                                             chaos_duration=args.duration)
        injector = FaultInjector(get_fault(args.fault))
    except ChaosError as e:
        logger.error("Invalid experiment configuration: %s", e)
        return 1

    if api is None:
        api = load_kube_client()
    probes = [targets_are_running] if args.check_targets else []
    context = ChaosContext(details, api, probes=probes)

    error = orchestrate_experiment(context, injector)
    for revert_error in context.result.revert_errors:
        logger.warning("Chaos may still be active: %s", revert_error)
    logger.info("Verdict: %s", context.result.verdict.value)
    if error is not None:
        logger.error("Experiment %s failed: %s", args.fault, error)
        return 1
    return 0


if __name__ == '__main__':
    arguments = parse_args()
    sys.exit(main(arguments))
