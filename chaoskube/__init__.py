"""
chaoskube module

This module contains:
 - actions that inject faults into pods and revert them. (actions directory)
 - probes that gather information about the targets of an experiment.
   (probes directory)
 - fault generators, pure functions building the commands that inject and
   reset one fault type. (faults directory)
 - a remote execution layer, running commands in a pod through the Kubernetes
   API or on its node over SSH (Python Fabric). (execute directory)
 - experiment configuration and result bookkeeping (experiment.py)
 - defaults and helpers (common directory)

An experiment injects a transient fault (I/O errors, CPU exhaustion, ...) into
running workloads, keeps it active for the chaos duration and then reverts
it. Whatever ends the chaos window (the duration elapsing, an injection
error, or an interrupt) the fault is reverted on every target it was started
on, and the run reports exactly one outcome.

Actions and probes may be used outside of chaos experiments for other kinds of
integration or systems testing. They should be written so they can be reused
outside of the context of the chaoskube runner.
"""
