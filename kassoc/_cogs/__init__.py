"""
Cogs are the lowest-level building blocks of the operator.

They know nothing about associations, reconciliation, or the operator's
lifecycle: only how to talk to the Kubernetes API, how to configure things,
and how to represent the raw and parsed structures.
"""
