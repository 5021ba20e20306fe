"""
The core of the operator: everything that makes it reconcile the associations.

The core depends on the cogs, but never the other way around.
"""
