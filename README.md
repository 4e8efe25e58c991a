# slurmops

Building blocks for a controller that runs Slurm clusters on top of a
pod-based scheduler. The package depends only on the standard library.

## Modules

- `slurmops.listutil`: `reference_list` copies items into a new list.
  `dereference_list` drops the `None` entries from a list.
- `slurmops.annotations`: reads typed values from annotation maps.
  `get_number_from_annotations` returns a 32-bit integer, or 0 when the key is
  absent. `get_bool_from_annotations` returns a boolean, or `False` when the
  key is absent. `get_time_from_annotations` returns an RFC 3339 time, or the
  zero time when the key is absent. All three raise `ValueError` on a malformed
  value. `valid_first_digit` rejects a leading `+` and leading zeros.
- `slurmops.mathutil`: `clamp` keeps a value within the range of two bounds,
  given in either order. `IntOrString` holds a value such as `5` or `"50%"`.
  `scaled_value_from_int_or_percent` resolves it against a total and raises
  `ValueError` when it is invalid. `get_scaled_value_from_int_or_percent`
  returns a default value in that case.
- `slurmops.batch`: `slow_start_batch(count, initial_batch_size, fn)` calls
  `fn(index)` `count` times. The calls run concurrently within a batch, and the
  batch size doubles after each batch that fully succeeds. It returns the number
  of successes. When a batch has a failure, it raises `BatchError`, which
  carries `successes` and the first `error`, and no later batches run.
- `slurmops.stores`: `DurationStore` and `TimeStore` are thread-safe keyed
  stores built on `ValueStore`. `push` keeps whichever value the evaluator
  prefers: `greater` keeps the larger or later one, and `less` keeps the smaller
  or earlier one. `pop` and `peek` return a zero value for a missing key.
- `slurmops.podinfo`: `PodInfo` holds a pod's namespace and name.
  `to_string` renders it as compact JSON. `parse_pod_info` reads that JSON
  into a `PodInfo`.
- `slurmops.objects`: dataclasses for `Pod`, `PodTemplateSpec`,
  `ControllerRevision`, `ObjectMeta`, `OwnerReference`, `NamespacedName` and
  `GroupVersionKind`. It also has `key_func`, `get_controller_of` and the pod
  checks `is_pod_ready`, `is_running_and_ready`, `is_running_and_available`,
  `is_created`, `is_pending`, `is_failed`, `is_succeeded`, `is_terminating`
  and `is_healthy`.
- `slurmops.apiclient`: `InMemoryClient` is a thread-safe object store keyed by
  kind, namespace and name. It provides:
  - `create`, which fills in `generate_name` with a random suffix;
  - `get`;
  - `update`, which checks the resource version;
  - `delete`;
  - `list`, which filters by label selector;
  - `patch`, which applies a JSON merge patch.

  Failures raise subclasses of `ApiError`: `NotFoundError`,
  `AlreadyExistsError`, `ConflictError` and `InvalidError`.
- `slurmops.clusters`: `Clusters` is a thread-safe registry of cluster
  clients keyed by `NamespacedName`. `add` starts the client's `start` in a
  background thread and stops any client it replaces. `remove` calls `stop`.
- `slurmops.historycontrol`: `HistoryControl` lists, creates, updates,
  deletes, adopts and releases controller revisions through an
  `InMemoryClient`. `create_controller_revision` returns the stored revision
  together with the collision count it used. The module also provides
  `hash_controller_revision`, `controller_revision_name`, `set_revision` and
  `get_revision`.
- `slurmops.podcontrol`: `PodControl` creates pods from a template or as
  given, deletes pods and patches pods. It records `Event`s on an
  `EventRecorder`. The module also provides `validate_controller_ref`,
  `pod_name_prefix` and `get_pod_from_template`.

## Example

```python
from datetime import timedelta

from slurmops.mathutil import IntOrString, get_scaled_value_from_int_or_percent
from slurmops.stores import DurationStore, greater

get_scaled_value_from_int_or_percent(IntOrString.from_string("50%"), 10, True, 0)  # 5

store = DurationStore(greater)
store.push("node-a", timedelta(seconds=1))
store.push("node-a", timedelta(minutes=1))
store.pop("node-a")  # timedelta(minutes=1)
```

## What it does not do

The package has no command-line program and no controller loop. It does not
connect to a real API server: `HistoryControl` and `PodControl` work against
an `InMemoryClient`. `Clusters` only holds the client objects it is given,
calling their `start` and `stop` methods. It does not include a client for
talking to Slurm.