from typing import Dict

from .schema import GenericResult, SheetResult, TaskRecord, TaskStatus


class Repo:
    """In-memory task registry.

    Records live for the lifetime of the process: there is no eviction and no
    capacity bound. Each task id has exactly one writer (the request that
    created it), so no locking is done.
    """

    def __init__(self):
        self._tasks: Dict[str, TaskRecord] = {}

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self):
        return iter(list(self._tasks))

    def put(self, taskid: str, rec: TaskRecord):
        self._tasks[taskid] = rec

    def save(self, rec: TaskRecord):
        self.put(rec.id, rec)

    def get(self, taskid: str) -> TaskRecord | None:
        return self._tasks.get(taskid)

    def set_status(self, taskid: str, status: TaskStatus, error: str | None = None) -> TaskRecord:
        rec = self._tasks[taskid].model_copy(update={"status": status, "error": error})
        self.put(taskid, rec)
        return rec

    def set_result(self, taskid: str, result: GenericResult | SheetResult) -> TaskRecord:
        rec = self._tasks[taskid].model_copy(
            update={"status": TaskStatus.DONE, "result": result, "error": None}
        )
        self.put(taskid, rec)
        return rec
