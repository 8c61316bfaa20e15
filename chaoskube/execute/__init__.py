"""
Command execution on chaos targets.

Commands and scripts are plain values. They only touch a target when run on a
Shell, which hands them to an Executor (Kubernetes pod exec or SSH).
"""
