"""
Chaos 'probes' module.

This module contains *probes* that gather data about the cluster without
changing it: resolving which pods and containers an experiment targets, and
checking that the targets are healthy before chaos is injected.

Probes gate an experiment. They run once per run, before anything is
injected, and a failing probe ends the run with a ProbeError without touching
any target.
"""
