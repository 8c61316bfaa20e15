"""
Chaos 'actions' module.

This module contains *actions* that inject faults into pods of a Kubernetes
cluster and revert them.

An experiment waits for the ramp time, resolves its target pods, runs its
probes, injects the fault into the targets (one at a time or all at once),
observes for the chaos duration, reverts the fault and waits for the ramp time
again.

Faults, failures and exceptions encountered while injecting do NOT leave the
fault behind: every target chaos was started on is reverted, whether the chaos
window ended by timing out, by an injection error or by SIGINT/SIGTERM.
Failing to revert is logged and recorded as a warning on the result, it never
hides the run's own outcome.

Things to consider when adding fault types:
1. A fault type is a pair of pure functions from its arguments to the
   injection and reset scripts (see chaoskube.faults). The engine in
   injector.py runs any fault type without modification.
2. The reset script must be safe to run when the injection only partly
   happened.
"""
