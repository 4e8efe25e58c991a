"""Building blocks for a Slurm cluster operator: object models, an in-memory
object store, pod and revision control, keyed stores and small helpers."""

__version__ = "0.2.0"